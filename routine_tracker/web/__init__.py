"""FastAPI web layer (routers, handlers, dependencies)."""
