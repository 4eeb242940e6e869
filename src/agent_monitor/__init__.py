"""Agent monitor: polls a task tracker and answers tasks/comments with AI workflows."""

__version__ = "0.1.0"
