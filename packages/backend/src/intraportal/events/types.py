"""Resource kind and action constants.

Learn: Centralizing these tags prevents typos. The same strings appear
in activity log rows and in the `resource`/`action` fields of the
real-time `update` frames pushed to WebSocket clients.
"""

# ─── Resource kinds ──────────────────────────────────────

NEWS = "news"
EVENT = "event"
DOCUMENT = "document"
ANNOUNCEMENT = "announcement"
USER = "user"
PREFERENCES = "preferences"
TEAMS_CHANNEL = "teams_channel"

# ─── Actions ─────────────────────────────────────────────

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"
RSVP = "rsvp"
SHARED = "shared"
SYNCED = "synced"
