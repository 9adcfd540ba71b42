"""Taskify: task, project and team lifecycle core."""

__version__ = "0.1.0"
