"""Leavedesk — leave request management backend."""

__version__ = "1.0.0"
