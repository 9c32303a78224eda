"""Audit event type constants.

Centralizing event types as constants prevents typos and makes every
auditable state change discoverable in one place.
"""

# ─── Accounts ────────────────────────────────────────────

USER_REGISTERED = "user.registered"
USER_OAUTH_LINKED = "user.oauth_linked"
USER_PROMOTED = "user.promoted"

# ─── Sessions ────────────────────────────────────────────

SESSION_ISSUED = "session.issued"
SESSION_ROTATED = "session.rotated"
SESSION_REFRESH_REJECTED = "session.refresh_rejected"
SESSION_REVOKED = "session.revoked"

# ─── Tenant resources ────────────────────────────────────

NGO_CREATED = "ngo.created"
NGO_UPDATED = "ngo.updated"
BRANCH_CREATED = "branch.created"
BRANCH_DELETED = "branch.deleted"
EVENT_CREATED = "event.created"
EVENT_UPDATED = "event.updated"
EVENT_DELETED = "event.deleted"
BADGE_CREATED = "badge.created"
BADGE_AWARDED = "badge.awarded"
