"""User and category SQLModel models."""

from __future__ import annotations

import datetime

from sqlmodel import Field, SQLModel


# 日本語: ルーチンの所有者 / English: Owner of routines and progress rows
class User(SQLModel, table=True):
    __tablename__ = "app_user"

    id: int | None = Field(default=None, primary_key=True)
    display_name: str = Field(max_length=100)
    is_active: bool = Field(default=True)
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)


# 日本語: テンプレートタスクの分類 / English: Optional classification for template tasks
class Category(SQLModel, table=True):
    __tablename__ = "category"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=50)
    color: str | None = Field(default=None, max_length=20)
    sort_order: int = Field(default=0)
    active: bool = Field(default=True)
