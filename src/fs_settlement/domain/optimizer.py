"""Greedy largest-first debt matching.

1. Partition into creditors (net > EPSILON_CENTS) and debtors
   (net < -EPSILON_CENTS).
2. Sort both descending by outstanding amount (stable: ties keep input order).
3. Match the largest creditor with the largest debtor and transfer the smaller
   remainder. A transfer is only recorded when it exceeds EPSILON_CENTS.
4. Advance past whichever side is left within EPSILON_CENTS of zero; stop
   when either side is exhausted.

Each step settles at least one party, which bounds the output at
creditors + debtors - 1 transactions. Stateless and side-effect free.
"""

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass

from src.fs_common.money import EPSILON_CENTS
from src.fs_common.participants import ParticipantRef
from src.fs_ledger.domain.models import ParticipantBalance
from src.fs_settlement.domain.models import Transaction


def settlement_id_for(
    group_id: str, sender: ParticipantRef, receiver: ParticipantRef, amount_cents: int
) -> str:
    """Deterministic id of an optimizer suggestion (same input → same id)."""
    raw = f"{group_id}|{sender.key}|{receiver.key}|{amount_cents}"
    return hashlib.sha256(raw.encode()).hexdigest()[:24]


@dataclass
class _Party:
    ref: ParticipantRef
    remaining: int


def optimize_settlements(
    balances: Iterable[ParticipantBalance], group_id: str = ""
) -> list[Transaction]:
    creditors: list[_Party] = []
    debtors: list[_Party] = []
    for bal in balances:
        net = bal.net_balance_cents
        if net > EPSILON_CENTS:
            creditors.append(_Party(bal.participant, net))
        elif net < -EPSILON_CENTS:
            debtors.append(_Party(bal.participant, -net))

    creditors.sort(key=lambda p: p.remaining, reverse=True)
    debtors.sort(key=lambda p: p.remaining, reverse=True)

    transactions: list[Transaction] = []
    ci = di = 0
    while ci < len(creditors) and di < len(debtors):
        creditor = creditors[ci]
        debtor = debtors[di]
        amount = min(creditor.remaining, debtor.remaining)
        if amount > EPSILON_CENTS:
            transactions.append(
                Transaction(
                    settlement_id=settlement_id_for(group_id, debtor.ref, creditor.ref, amount),
                    sender=debtor.ref,
                    receiver=creditor.ref,
                    amount_cents=amount,
                )
            )
        creditor.remaining -= amount
        debtor.remaining -= amount
        if creditor.remaining <= EPSILON_CENTS:
            ci += 1
        if debtor.remaining <= EPSILON_CENTS:
            di += 1

    if creditors and debtors:
        assert len(transactions) <= len(creditors) + len(debtors) - 1, (
            f"Settlement bound violated: {len(transactions)} transactions for "
            f"{len(creditors)} creditors / {len(debtors)} debtors"
        )
    return transactions
