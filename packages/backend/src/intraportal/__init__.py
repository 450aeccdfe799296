"""Intraportal — intranet portal backend.

Authenticated REST access to news, events, documents and announcements,
user profiles and preferences, a thin Microsoft Teams integration, and
a WebSocket channel that pushes live update notifications.
"""

__version__ = "0.1.0"
