"""Tests for validate_expense."""

import pytest

from src.fs_common.errors import ValidationError
from src.fs_common.participants import ParticipantRef
from src.fs_expense.domain.models import ShareLine
from src.fs_expense.domain.validation import validate_expense


def test_exact_split_accepted(roster, alice, bob, carol) -> None:
    validate_expense(
        1000, alice, [ShareLine(alice, 333), ShareLine(bob, 333), ShareLine(carol, 334)],
        roster.refs,
    )


def test_placeholder_may_pay(roster, alice, carol) -> None:
    validate_expense(500, carol, [ShareLine(alice, 500)], roster.refs)


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_amount(roster, alice, amount) -> None:
    with pytest.raises(ValidationError, match="positive"):
        validate_expense(amount, alice, [ShareLine(alice, 100)], roster.refs)


def test_sum_must_match_exactly(roster, alice, bob) -> None:
    with pytest.raises(ValidationError, match="999"):
        validate_expense(1000, alice, [ShareLine(alice, 500), ShareLine(bob, 499)], roster.refs)


def test_one_cent_over_rejected(roster, alice, bob) -> None:
    with pytest.raises(ValidationError):
        validate_expense(1000, alice, [ShareLine(alice, 500), ShareLine(bob, 501)], roster.refs)


def test_empty_shares(roster, alice) -> None:
    with pytest.raises(ValidationError, match="at least one"):
        validate_expense(1000, alice, [], roster.refs)


def test_payer_outside_group(roster, alice) -> None:
    with pytest.raises(ValidationError, match="Payer"):
        validate_expense(100, ParticipantRef.member("mallory"), [ShareLine(alice, 100)], roster.refs)


def test_participant_outside_group(roster, alice) -> None:
    with pytest.raises(ValidationError, match="mallory"):
        validate_expense(
            100, alice, [ShareLine(ParticipantRef.member("mallory"), 100)], roster.refs
        )


def test_kind_is_part_of_identity(roster, alice) -> None:
    # "carol" exists only as a placeholder
    with pytest.raises(ValidationError):
        validate_expense(100, alice, [ShareLine(ParticipantRef.member("carol"), 100)], roster.refs)


def test_duplicate_participant(roster, alice, bob) -> None:
    with pytest.raises(ValidationError, match="twice"):
        validate_expense(200, alice, [ShareLine(bob, 100), ShareLine(bob, 100)], roster.refs)


def test_zero_share(roster, alice, bob) -> None:
    with pytest.raises(ValidationError, match="Share for"):
        validate_expense(100, alice, [ShareLine(alice, 100), ShareLine(bob, 0)], roster.refs)
