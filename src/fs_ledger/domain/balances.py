"""ComputeBalances — a pure fold over persisted expense / share rows.

    totalPaid = Σ expense.amount where payer == participant
    totalOwed = Σ share.amount   where participant == participant
    net       = totalPaid − totalOwed (+ settlements marked paid)

Amounts are int cents, so the fold is exact; the zero-sum check below is a
system invariant, not user validation, and fails loudly.
"""

import logging
from collections.abc import Iterable

from src.fs_common.money import EPSILON_CENTS
from src.fs_common.participants import ParticipantRef
from src.fs_ledger.domain.models import (
    OwedShare,
    PaidExpense,
    ParticipantBalance,
    SettledPayment,
)

logger = logging.getLogger(__name__)


def compute_balances(
    roster: Iterable[ParticipantRef],
    expenses: Iterable[PaidExpense],
    shares: Iterable[OwedShare],
    settlements: Iterable[SettledPayment] = (),
) -> list[ParticipantBalance]:
    """Return one ParticipantBalance per roster entry, in roster order.

    Rows naming a participant outside the roster (e.g. a departed member)
    are kept out of the result but still counted for the zero-sum check.
    """
    balances: dict[ParticipantRef, ParticipantBalance] = {}
    for ref in roster:
        balances.setdefault(ref, ParticipantBalance(participant=ref))

    unattributed = 0
    for exp in expenses:
        bal = balances.get(exp.payer)
        if bal is None:
            unattributed += exp.amount_cents
        else:
            bal.total_paid_cents += exp.amount_cents

    for share in shares:
        bal = balances.get(share.participant)
        if bal is None:
            unattributed -= share.amount_cents
        else:
            bal.total_owed_cents += share.amount_cents

    for payment in settlements:
        sender = balances.get(payment.sender)
        receiver = balances.get(payment.receiver)
        if sender is None:
            unattributed += payment.amount_cents
        else:
            sender.settled_sent_cents += payment.amount_cents
        if receiver is None:
            unattributed -= payment.amount_cents
        else:
            receiver.settled_received_cents += payment.amount_cents

    result = list(balances.values())
    if unattributed:
        logger.error(
            "Ledger rows reference participants outside the roster: %d cents unattributed",
            unattributed,
        )
    verify_zero_sum(result, unattributed)
    return result


def verify_zero_sum(balances: list[ParticipantBalance], unattributed: int = 0) -> None:
    """Σ net balances (+ anything unattributed) == 0 within one cent."""
    total = sum(b.net_balance_cents for b in balances) + unattributed
    assert abs(total) <= EPSILON_CENTS, (
        f"Zero-sum violated: Σ net balances = {total} cents "
        f"(unattributed={unattributed}) across {len(balances)} participants"
    )
