"""Unit tests for GroupDirectoryService and the Roster view."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.fs_common.errors import NotGroupMemberError, PlaceholderNotFoundError
from src.fs_common.participants import ParticipantRef
from src.fs_group.application.service import GroupDirectoryService


@pytest.fixture
def db() -> MagicMock:
    mock = MagicMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    return mock


class TestEnsureMember:
    async def test_member_passes(self, db) -> None:
        repo = AsyncMock()
        repo.is_member.return_value = True
        await GroupDirectoryService(repo=repo).ensure_member(db, "g1", "alice")
        repo.is_member.assert_awaited_once_with(db, "g1", "alice")

    async def test_outsider_rejected(self, db) -> None:
        repo = AsyncMock()
        repo.is_member.return_value = False
        with pytest.raises(NotGroupMemberError) as exc_info:
            await GroupDirectoryService(repo=repo).ensure_member(db, "g1", "mallory")
        assert exc_info.value.http_status == 403


class TestClaimPlaceholder:
    async def test_commits_on_success(self, db) -> None:
        repo = AsyncMock()
        repo.reassign_placeholder.return_value = True
        await GroupDirectoryService(repo=repo).claim_placeholder(db, "g1", "carol", "dave")
        repo.reassign_placeholder.assert_awaited_once_with(db, "g1", "carol", "dave")
        db.commit.assert_awaited_once()

    async def test_unknown_placeholder_rolls_back(self, db) -> None:
        repo = AsyncMock()
        repo.reassign_placeholder.return_value = False
        with pytest.raises(PlaceholderNotFoundError):
            await GroupDirectoryService(repo=repo).claim_placeholder(db, "g1", "zed", "dave")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestRoster:
    def test_lookup_by_kind_and_id(self, roster, carol) -> None:
        assert roster.contains(carol)
        assert not roster.contains(ParticipantRef.member("carol"))
        assert roster.get(carol).name == "Carol"
        assert roster.get(ParticipantRef.member("nobody")) is None

    def test_names_and_refs_keep_order(self, roster, alice, bob, carol) -> None:
        assert roster.refs == [alice, bob, carol]
        assert roster.names[bob] == "Bob"
