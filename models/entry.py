"""User and experience records as exchanged with the roster API."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union


@dataclass
class Experience:
    """An activity owned by one user, with zero or more participants."""

    id: Optional[str] = None
    description: str = ""
    date: Optional[str] = None
    owner: Optional[str] = None
    participants: List[str] = field(default_factory=list)

    def involves(self, user_id: str) -> bool:
        return self.owner == user_id or user_id in self.participants

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Experience":
        owner = data.get("owner")
        # The API may populate the owner as a full user object
        if isinstance(owner, dict):
            owner = owner.get("_id")
        participants = []
        for p in data.get("participants") or []:
            pid = p.get("_id") if isinstance(p, dict) else p
            if pid:
                participants.append(str(pid))
        return cls(
            id=data.get("_id"),
            description=data.get("description") or "",
            date=data.get("date"),
            owner=str(owner) if owner else None,
            participants=participants,
        )

    def to_json(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "description": self.description,
            "owner": self.owner,
            "participants": list(self.participants),
        }
        if self.date is not None:
            body["date"] = self.date
        if self.id is not None:
            body["_id"] = self.id
        return body


# An experience slot holds either the bare id or the resolved record
Reference = Union[str, Experience]


def reference_id(ref: Reference) -> Optional[str]:
    if isinstance(ref, Experience):
        return ref.id
    return ref


def is_resolved(ref: Reference) -> bool:
    return isinstance(ref, Experience)


@dataclass
class Entry:
    """A user of the roster.

    ``experiences`` is always a list; a record coming back from the API
    without the field gets an empty one.
    """

    id: Optional[str] = None
    name: str = ""
    mail: str = ""
    password: str = ""
    comment: str = ""
    experiences: List[Reference] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return bool(self.id)

    def copy(self) -> "Entry":
        """Copy with its own reference list (slots themselves are shared)."""
        return replace(self, experiences=list(self.experiences))

    def unresolved_ids(self) -> List[str]:
        return [ref for ref in self.experiences if not is_resolved(ref)]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Entry":
        refs: List[Reference] = []
        for raw in data.get("experiencies") or []:
            if isinstance(raw, dict):
                refs.append(Experience.from_json(raw))
            elif raw:
                refs.append(str(raw))
        return cls(
            id=data.get("_id"),
            name=data.get("name") or "",
            mail=data.get("mail") or "",
            password=data.get("password") or "",
            comment=data.get("comment") or "",
            experiences=refs,
        )

    def to_json(self, include_id: bool = True) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": self.name,
            "mail": self.mail,
            "password": self.password,
            "comment": self.comment,
            # References always go over the wire as ids
            "experiencies": [
                rid for rid in (reference_id(r) for r in self.experiences) if rid
            ],
        }
        if include_id and self.id is not None:
            body["_id"] = self.id
        return body


def merge_created(draft: Entry, created: Entry) -> Entry:
    """Combine a submitted draft with the API's echo of it.

    Server fields win; the draft only fills in what the response omits.
    """
    return Entry(
        id=created.id,
        name=created.name or draft.name,
        mail=created.mail or draft.mail,
        password=created.password or draft.password,
        comment=created.comment or draft.comment,
        experiences=list(created.experiences) if created.experiences else list(draft.experiences),
    )
