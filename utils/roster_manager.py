"""User roster: the in-memory list of users and its sync with the API."""

from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from models.entry import Entry
from models.row_state import RowState

from .exceptions import NotPersisted, RosterError, SecretMismatch
from .form_staging import FormStagingArea
from .reference_resolver import ReferenceResolver, ResolutionReport
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)

EAGER = "eager"
LAZY = "lazy"
RESOLVER_MODES = (EAGER, LAZY)


@dataclass
class RosterRow:
    key: str
    entry: Entry
    state: RowState = field(default_factory=RowState)


class Roster:
    """Ordered users with their display state, keyed by id.

    Users without an id yet get a ``local-N`` key. A row's entry and
    state always move together, so the per-index flag lists derived
    from it can never drift out of step with the users.
    """

    def __init__(self):
        self._rows: "OrderedDict[str, RosterRow]" = OrderedDict()
        self._local_keys = itertools.count(1)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[RosterRow]:
        return iter(list(self._rows.values()))

    def _key_for(self, entry: Entry) -> str:
        if entry.id and entry.id not in self._rows:
            return entry.id
        return f"local-{next(self._local_keys)}"

    def row(self, index: int) -> RosterRow:
        if not 0 <= index < len(self._rows):
            raise IndexError(f"no roster row at index {index}")
        return list(self._rows.values())[index]

    def index_of(self, key: str) -> Optional[int]:
        for i, k in enumerate(self._rows):
            if k == key:
                return i
        return None

    @property
    def entries(self) -> List[Entry]:
        return [r.entry for r in self._rows.values()]

    def expanded_flags(self) -> List[bool]:
        return [r.state.expanded for r in self._rows.values()]

    def biography_flags(self) -> List[bool]:
        return [r.state.biography_expanded for r in self._rows.values()]

    def password_flags(self) -> List[bool]:
        return [r.state.password_visible for r in self._rows.values()]

    def replace_all(self, entries: List[Entry]) -> None:
        self._rows.clear()
        for entry in entries:
            self.append(entry)

    def append(self, entry: Entry) -> RosterRow:
        row = RosterRow(self._key_for(entry), entry)
        self._rows[row.key] = row
        return row

    def replace(self, index: int, entry: Entry) -> RosterRow:
        row = self.row(index)
        row.entry = entry
        return row

    def pop(self, index: int) -> RosterRow:
        row = self.row(index)
        del self._rows[row.key]
        return row


@dataclass
class OperationResult:
    success: bool
    message: str
    entry: Optional[Entry] = None
    error: Optional[RosterError] = None

    def __bool__(self) -> bool:
        return self.success


def _log_notify(message: str) -> None:
    logger.warning(message)


def _always_confirm(message: str) -> bool:
    return True


class RosterController:
    """Owns the roster and keeps it in step with the users API.

    The roster is only changed after the API call behind an operation
    has succeeded; failures go to ``notify`` and leave it as it was.
    """

    def __init__(
        self,
        users: RemoteStore[Entry],
        resolver: ReferenceResolver,
        mode: str = EAGER,
        confirm: Callable[[str], bool] = _always_confirm,
        notify: Callable[[str], None] = _log_notify,
    ):
        if mode not in RESOLVER_MODES:
            raise ValueError(f"unknown resolver mode: {mode}")
        self.users = users
        self.resolver = resolver
        self.mode = mode
        self.confirm = confirm
        self.notify = notify
        self.form = FormStagingArea()
        self.roster = Roster()
        self.last_resolution: Optional[ResolutionReport] = None

    @property
    def entries(self) -> List[Entry]:
        return self.roster.entries

    @property
    def editing_index(self) -> Optional[int]:
        return self.form.editing_index

    @property
    def is_editing(self) -> bool:
        return self.form.is_editing

    def row_state(self, index: int) -> RowState:
        return self.roster.row(index).state

    def _fail(self, message: str, error: RosterError) -> OperationResult:
        logger.error("%s: %s", message, error)
        self.notify(f"{message}: {error}")
        return OperationResult(False, message, error=error)

    async def load(self) -> OperationResult:
        """Fetch all users and reset every row's display state."""
        try:
            entries = await self.users.list()
        except RosterError as e:
            return self._fail("Could not load users", e)

        self.roster.replace_all(entries)
        # Indexes from before the reload mean nothing now
        if self.form.is_editing:
            self.form.reset()
        logger.info("Loaded %d user(s)", len(entries))
        if self.mode == EAGER:
            self.last_resolution = await self.resolver.resolve_all_eager(entries)
        return OperationResult(True, f"Loaded {len(entries)} users")

    async def submit(
        self, draft: Optional[Entry] = None, confirm_secret: Optional[str] = None
    ) -> OperationResult:
        """Create the staged user, or update the one being edited."""
        if draft is not None:
            self.form.draft = draft
        if confirm_secret is not None:
            self.form.confirm_secret = confirm_secret
        self.form.submitted = True

        if not self.form.secrets_match():
            error = SecretMismatch("Passwords do not match")
            self.notify("Passwords do not match. Please try again.")
            return OperationResult(False, str(error), error=error)

        if self.form.is_editing:
            return await self._commit_edit()
        return await self._commit_new()

    async def _commit_edit(self) -> OperationResult:
        row = self.roster.row(self.form.editing_index)
        original = row.entry
        changed = self.form.draft.copy()
        changed.id = original.id
        if not changed.persisted:
            error = NotPersisted(f"{original.name or 'user'} is not saved yet")
            self.notify(str(error))
            return OperationResult(False, str(error), error=error)

        try:
            updated = await self.users.update(changed)
        except RosterError as e:
            return self._fail("Could not update user", e)

        # The API owns the stored record but never changes its id
        updated.id = original.id
        if self.mode == EAGER:
            await self.resolver.resolve_entry(updated)
        # Rows may have been removed while the update was in flight
        current = self.roster.index_of(row.key)
        if current is None:
            # remove() already reset a form that was editing this row
            logger.info("Updated user %s after its row was removed", updated.id)
            return OperationResult(True, f"Updated {updated.name}", entry=updated)
        self.roster.replace(current, updated)
        if self.form.editing_index == current:
            self.form.reset()
        logger.info("Updated user %s", updated.id)
        return OperationResult(True, f"Updated {updated.name}", entry=updated)

    async def _commit_new(self) -> OperationResult:
        draft = self.form.draft.copy()
        draft.id = None
        try:
            created = await self.users.create(draft)
        except RosterError as e:
            return self._fail("Could not add user", e)

        if self.mode == EAGER:
            await self.resolver.resolve_entry(created)
        self.roster.append(created)
        self.form.reset()
        logger.info("Added user %s", created.id)
        return OperationResult(True, f"Added {created.name}", entry=created)

    async def remove(self, index: int) -> OperationResult:
        """Delete the user at ``index`` after asking for confirmation."""
        row = self.roster.row(index)
        entry = row.entry
        if not entry.persisted:
            error = NotPersisted(
                f"{entry.name or 'This user'} cannot be deleted because it is not saved"
            )
            logger.error("Refusing to delete unsaved user at index %d", index)
            self.notify(str(error))
            return OperationResult(False, str(error), error=error)

        if not self.confirm(f"Are you sure you want to delete {entry.name}?"):
            return OperationResult(False, "Delete cancelled")

        try:
            await self.users.delete(entry.id)
        except RosterError as e:
            return self._fail("Could not delete user", e)

        # The row may have moved while the request was in flight
        current = self.roster.index_of(row.key)
        if current is not None:
            self.roster.pop(current)
            self._shift_edit_after_removal(current)
        logger.info("Deleted user %s", entry.id)
        return OperationResult(True, f"Deleted {entry.name}", entry=entry)

    def _shift_edit_after_removal(self, removed: int) -> None:
        editing = self.form.editing_index
        if editing is None:
            return
        if editing == removed:
            self.form.reset()
        elif editing > removed:
            self.form.editing_index = editing - 1

    def begin_edit(self, index: int) -> None:
        row = self.roster.row(index)
        self.form.stage(row.entry, index)
        row.state.expanded = True

    def cancel_or_reset(self) -> None:
        self.form.reset()

    def toggle_expanded(self, index: int) -> bool:
        state = self.row_state(index)
        state.expanded = not state.expanded
        return state.expanded

    def toggle_biography(self, index: int) -> bool:
        state = self.row_state(index)
        state.biography_expanded = not state.biography_expanded
        return state.biography_expanded

    def toggle_password(self, index: int) -> bool:
        state = self.row_state(index)
        state.password_visible = not state.password_visible
        return state.password_visible

    async def toggle_experiences(self, index: int) -> OperationResult:
        """Expand or collapse a row, fetching its experiences in lazy mode."""
        expanded = self.toggle_expanded(index)
        if not expanded or self.mode != LAZY:
            return OperationResult(True, "expanded" if expanded else "collapsed")
        return await self.load_row_experiences(index)

    async def begin_edit_and_load(self, index: int) -> OperationResult:
        """Stage the row for editing and, in lazy mode, fetch what it shows."""
        self.begin_edit(index)
        if self.mode != LAZY:
            return OperationResult(True, "editing")
        return await self.load_row_experiences(index)

    async def load_row_experiences(self, index: int) -> OperationResult:
        """Fetch experiences owned by or involving the user at ``index``."""
        row = self.roster.row(index)
        if not row.entry.persisted:
            return OperationResult(True, "expanded")

        try:
            items = await self.resolver.resolve_for_owner(row.entry.id)
        except RosterError as e:
            return self._fail("Could not load experiences", e)

        # Skip rows deleted while the query ran
        if self.roster.index_of(row.key) is not None:
            row.state.experiences = items
        return OperationResult(True, f"{len(items)} experiences")
