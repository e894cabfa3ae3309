"""Print agent: a priority print queue with spooler-confirmed completion."""

__version__ = "0.1.0"
