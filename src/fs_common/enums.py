"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ParticipantKind(str, Enum):
    """Discriminant of the participant identity union."""
    MEMBER = "member"
    PLACEHOLDER = "placeholder"


class ReceiptSessionStatus(str, Enum):
    CLAIMING = "claiming"
    COMPLETED = "completed"


class ClaimAction(str, Enum):
    CLAIM = "claim"
    UNCLAIM = "unclaim"


class RealtimeEventType(str, Enum):
    CONNECTED = "connected"
    USER_JOINED = "user_joined"
    ITEM_CLAIMED = "item_claimed"
    ITEM_UNCLAIMED = "item_unclaimed"
    SESSION_FINALIZED = "session_finalized"
    SESSION_REOPENED = "session_reopened"
    SESSION_CANCELLED = "session_cancelled"


class RemainderPolicy(str, Enum):
    """Who absorbs the final receipt discrepancy at finalize time."""
    PAYER = "payer"
    PROPORTIONAL = "proportional"


class FinalizeOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
