"""Share-set validation, run before anything is written."""

from collections.abc import Iterable

from src.fs_common.errors import ValidationError
from src.fs_common.participants import ParticipantRef
from src.fs_expense.domain.models import ShareLine


def validate_expense(
    amount_cents: int,
    paid_by: ParticipantRef,
    shares: list[ShareLine],
    roster: Iterable[ParticipantRef],
) -> None:
    """Raise ValidationError unless the shares form a complete split of the amount.

    The sum must match exactly; a one-cent gap here would become a permanent
    one-cent hole in the group's zero-sum ledger.
    """
    allowed = set(roster)
    if amount_cents <= 0:
        raise ValidationError("Expense amount must be positive")
    if paid_by not in allowed:
        raise ValidationError(f"Payer {paid_by.key} is not a participant of this group")
    if not shares:
        raise ValidationError("An expense needs at least one participant")

    seen: set[ParticipantRef] = set()
    for line in shares:
        if line.participant not in allowed:
            raise ValidationError(
                f"Participant {line.participant.key} is not a participant of this group"
            )
        if line.participant in seen:
            raise ValidationError(f"Participant {line.participant.key} appears twice")
        seen.add(line.participant)
        if line.amount_cents <= 0:
            raise ValidationError(f"Share for {line.participant.key} must be positive")

    total = sum(line.amount_cents for line in shares)
    if total != amount_cents:
        raise ValidationError(
            f"Shares sum to {total} cents but the expense amount is {amount_cents} cents"
        )
