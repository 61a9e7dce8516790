"""Shared test fixtures."""

import os

# Settings() requires a secret; must be set before any src import
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")

import pytest  # noqa: E402

from src.fs_common.participants import ParticipantRef  # noqa: E402
from src.fs_group.domain.models import Roster, RosterEntry  # noqa: E402


@pytest.fixture
def alice() -> ParticipantRef:
    return ParticipantRef.member("alice")


@pytest.fixture
def bob() -> ParticipantRef:
    return ParticipantRef.member("bob")


@pytest.fixture
def carol() -> ParticipantRef:
    return ParticipantRef.placeholder("carol")


@pytest.fixture
def roster(alice: ParticipantRef, bob: ParticipantRef, carol: ParticipantRef) -> Roster:
    return Roster(
        group_id="g1",
        entries=[
            RosterEntry(ref=alice, name="Alice", email="alice@example.com", payment_info="@alice"),
            RosterEntry(ref=bob, name="Bob", email="bob@example.com"),
            RosterEntry(ref=carol, name="Carol"),
        ],
    )
