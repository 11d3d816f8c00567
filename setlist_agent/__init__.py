"""Conversational setlist-generation agent."""

__version__ = "0.1.0"
