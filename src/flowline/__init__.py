"""Workflow automation engine: graph compilation, editing and execution."""

__version__ = "0.1.0"
