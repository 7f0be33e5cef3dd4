"""Agent pipeline that turns captured kanban tasks into reviewable hints."""

__version__ = "0.1.0"
