"""Event payloads pushed to receipt-session subscribers.

Payloads are advisory snapshots for the UI; clients re-fetch the session
state on any event instead of trusting these numbers.
"""

from pydantic import BaseModel, Field

from src.fs_common.datetime_utils import utc_now
from src.fs_common.enums import RealtimeEventType


class ClaimantSummary(BaseModel):
    participant_id: str
    participant_kind: str
    name: str
    image: str | None = None


class RealtimeEvent(BaseModel):
    type: RealtimeEventType
    session_id: str
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    member_id: str | None = None
    member_name: str | None = None
    message: str | None = None
    # item_claimed / item_unclaimed
    item_id: str | None = None
    item_name: str | None = None
    item_price_cents: int | None = None
    total_claims: int | None = None
    share_per_person_cents: int | None = None
    claimants: list[ClaimantSummary] | None = None
    # session_finalized
    expense_id: str | None = None

    def to_sse(self) -> str:
        """Server-Sent Events frame: one `data:` line + blank line."""
        return f"data: {self.model_dump_json(exclude_none=True)}\n\n"
