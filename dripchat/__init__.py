"""Chat hub, chat storage, sessions, request guards, HTTP handlers and routing."""

__version__ = "0.1.0"