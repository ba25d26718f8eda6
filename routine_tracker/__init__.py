"""Routine Tracker: routines, daily task progress and the task status engine."""
