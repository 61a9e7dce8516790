"""Reconciliation Engine — claims + declared totals → exact expense shares.

Pipeline (all intermediates are Decimal cents):

1. Item split: a claimed item is divided evenly among its claimants; an
   unclaimed item is divided evenly among *all* session participants.
2. Subtotal correction: when declared subtotal and Σ item prices differ by
   more than one cent, the gap is spread proportionally to base shares
   (item-level extraction is the less trustworthy number).
3. Tax + tip: each share grows by share × (tax + tip) / subtotal.
4. Final correction: when Σ shares and the declared total still differ by
   more than one cent, the payer absorbs the gap (or, under the
   proportional policy, everyone does pro rata).
5. Shares ≤ 0.1 cent are dropped; the rest round half-up to whole cents,
   except the last participant (payer sorted last) who gets
   total − Σ other rounded shares. Σ persisted shares == total, exactly.

Pure and deterministic: identical inputs give identical output.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from src.fs_common.enums import RemainderPolicy
from src.fs_common.errors import ReconciliationInputError
from src.fs_common.money import EPSILON_CENTS, round_cents
from src.fs_common.participants import ParticipantRef
from src.fs_receipt.domain.models import ParticipantShare, ReceiptItem, ReconciliationResult

logger = logging.getLogger(__name__)

# 0.001 currency units
_NEGLIGIBLE_CENTS = Decimal("0.1")
_ZERO = Decimal(0)


def _split_items(
    items: Sequence[ReceiptItem],
    claims: Mapping[str, Sequence[ParticipantRef]],
    participants: Sequence[ParticipantRef],
) -> dict[ParticipantRef, Decimal]:
    shares: dict[ParticipantRef, Decimal] = {p: _ZERO for p in participants}
    everyone = list(participants)
    for item in items:
        # dict.fromkeys: duplicate claim rows must not double-weight a claimant
        claimants = list(dict.fromkeys(claims.get(item.id, ())))
        splitters = claimants or everyone
        portion = Decimal(item.price_cents) / len(splitters)
        for ref in splitters:
            shares[ref] = shares.get(ref, _ZERO) + portion
    return shares


def _spread(shares: dict[ParticipantRef, Decimal], amount: Decimal) -> bool:
    """Add `amount` pro rata to the current shares; False when there is no base."""
    base = sum(shares.values(), _ZERO)
    if base <= 0:
        return False
    for ref, share in shares.items():
        shares[ref] = share + amount * share / base
    return True


def reconcile(
    items: Sequence[ReceiptItem],
    claims: Mapping[str, Sequence[ParticipantRef]],
    participants: Sequence[ParticipantRef],
    subtotal_cents: int,
    tax_cents: int,
    tip_cents: int,
    total_cents: int,
    payer: ParticipantRef,
    policy: RemainderPolicy = RemainderPolicy.PAYER,
) -> ReconciliationResult:
    """Return the expense amount and its per-participant shares.

    `claims` maps item id → claimants. Raises ReconciliationInputError for
    inputs no allocation can satisfy (no participants, no positive total).
    """
    if not participants:
        raise ReconciliationInputError("session has no participants")
    if total_cents <= 0:
        raise ReconciliationInputError("receipt total must be positive")

    shares = _split_items(items, claims, participants)

    items_sum = sum(item.price_cents for item in items)
    items_discrepancy = subtotal_cents - items_sum
    if abs(items_discrepancy) > EPSILON_CENTS:
        if _spread(shares, Decimal(items_discrepancy)):
            logger.info(
                "Subtotal correction: declared=%d items=%d adjustment=%d cents",
                subtotal_cents, items_sum, items_discrepancy,
            )

    if subtotal_cents > 0:
        multiplier = Decimal(tax_cents + tip_cents) / Decimal(subtotal_cents)
        for ref, share in shares.items():
            shares[ref] = share + share * multiplier

    final_discrepancy = Decimal(total_cents) - sum(shares.values(), _ZERO)
    if abs(final_discrepancy) > EPSILON_CENTS:
        absorbed = False
        if policy is RemainderPolicy.PROPORTIONAL:
            absorbed = _spread(shares, final_discrepancy)
        if not absorbed and payer in shares:
            shares[payer] += final_discrepancy
            absorbed = True
        logger.info(
            "Final correction of %s cents (%s)",
            final_discrepancy.quantize(Decimal("0.01")),
            policy.value if absorbed else "left to remainder",
        )

    ordered = [ref for ref, share in shares.items() if share > _NEGLIGIBLE_CENTS]
    # stable sort: the payer goes last and takes the rounding remainder
    ordered.sort(key=lambda ref: ref == payer)
    if not ordered:
        raise ReconciliationInputError("no participant has a positive share")

    result: list[ParticipantShare] = []
    running = 0
    for ref in ordered[:-1]:
        rounded = round_cents(shares[ref])
        if rounded <= 0:
            continue
        running += rounded
        result.append(ParticipantShare(ref, rounded))

    remainder = total_cents - running
    if remainder < 0:
        raise ReconciliationInputError(
            f"shares exceed the receipt total by {-remainder} cents"
        )
    if remainder > 0:
        result.append(ParticipantShare(ordered[-1], remainder))

    assert sum(s.amount_cents for s in result) == total_cents, (
        f"Share-sum violated: {sum(s.amount_cents for s in result)} != {total_cents}"
    )
    return ReconciliationResult(
        amount_cents=total_cents,
        shares=result,
        items_discrepancy_cents=items_discrepancy,
        final_discrepancy_cents=round_cents(final_discrepancy),
    )


def share_per_claimant(price_cents: int, claim_count: int) -> int:
    """Advisory per-person cost of one item, as shown while claiming."""
    if claim_count <= 0:
        return price_cents
    return round_cents(Decimal(price_cents) / claim_count)
