"""Domain models for fs_group — read-side view of the group roster."""

from dataclasses import dataclass

from src.fs_common.participants import ParticipantRef


@dataclass(frozen=True)
class RosterEntry:
    """One participant able to owe / be owed money in a group.

    Members come from group_members; placeholders only while unclaimed.
    """

    ref: ParticipantRef
    name: str
    email: str | None = None
    image: str | None = None
    payment_info: str | None = None


@dataclass
class Roster:
    group_id: str
    entries: list[RosterEntry]

    @property
    def refs(self) -> list[ParticipantRef]:
        return [e.ref for e in self.entries]

    @property
    def names(self) -> dict[ParticipantRef, str]:
        return {e.ref: e.name for e in self.entries}

    def contains(self, ref: ParticipantRef) -> bool:
        return any(e.ref == ref for e in self.entries)

    def get(self, ref: ParticipantRef) -> RosterEntry | None:
        for entry in self.entries:
            if entry.ref == ref:
                return entry
        return None
