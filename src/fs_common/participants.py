"""Polymorphic participant identity.

A participant is addressed by the (kind, id) pair, never by id alone:
member ids and placeholder ids live in different tables and may collide.
"""

from dataclasses import dataclass

from src.fs_common.enums import ParticipantKind


@dataclass(frozen=True, order=True)
class ParticipantRef:
    kind: ParticipantKind
    id: str

    @classmethod
    def member(cls, member_id: str) -> "ParticipantRef":
        return cls(ParticipantKind.MEMBER, str(member_id))

    @classmethod
    def placeholder(cls, placeholder_id: str) -> "ParticipantRef":
        return cls(ParticipantKind.PLACEHOLDER, str(placeholder_id))

    @classmethod
    def from_row(cls, participant_id: object, participant_kind: str) -> "ParticipantRef":
        return cls(ParticipantKind(participant_kind), str(participant_id))

    @property
    def key(self) -> str:
        """Stable text form, e.g. 'member:42'."""
        return f"{self.kind.value}:{self.id}"


def describe_participant(ref: ParticipantRef, names: dict[ParticipantRef, str]) -> str:
    """Resolve a display name, matching exhaustively on the kind."""
    name = names.get(ref)
    if ref.kind is ParticipantKind.MEMBER:
        return name or "Unknown member"
    if ref.kind is ParticipantKind.PLACEHOLDER:
        return f"{name} (placeholder)" if name else "Unknown placeholder"
    raise AssertionError(f"Unhandled participant kind: {ref.kind!r}")
