"""Turn experience ids held by users into full experience records.

Two modes are supported:

* eager: every unresolved slot of every user is fetched with one
  ``get`` per distinct id and replaced in place;
* lazy: one aggregate query per user, returned as a flat list and left
  to the caller to display.

Both run on a single event loop. A slot is only written by the
completion that was started for it most recently; older completions
are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models.entry import Entry, Experience, is_resolved

from .exceptions import RosterError
from .remote_store import ExperienceStore

logger = logging.getLogger(__name__)


@dataclass
class SlotFailure:
    entry_id: Optional[str]
    index: int
    reference: str
    error: RosterError


@dataclass
class ResolutionReport:
    resolved: int = 0
    skipped: int = 0
    stale: int = 0
    failures: List[SlotFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ReferenceResolver:
    """Resolves experience references for roster entries."""

    def __init__(self, store: ExperienceStore):
        self.store = store
        # (id(entry), slot index) -> generation of the latest resolution
        self._generations: Dict[Tuple[int, int], int] = {}
        self._owner_tasks: Dict[str, asyncio.Task] = {}

    def _next_generation(self, entry: Entry, index: int) -> int:
        key = (id(entry), index)
        gen = self._generations.get(key, 0) + 1
        self._generations[key] = gen
        return gen

    def _is_current(self, entry: Entry, index: int, gen: int) -> bool:
        return self._generations.get((id(entry), index)) == gen

    def _settle(self, entry: Entry, index: int, gen: int) -> bool:
        """Forget the slot's generation if ``gen`` is still the latest one."""
        if not self._is_current(entry, index, gen):
            return False
        del self._generations[(id(entry), index)]
        return True

    async def resolve_all_eager(self, entries: Iterable[Entry]) -> ResolutionReport:
        """Replace every unresolved experience id with its record.

        Best effort: an id that cannot be fetched stays in its slot and
        is listed in the report's failures.
        """
        report = ResolutionReport()
        fetches: Dict[str, asyncio.Future] = {}
        pending = []

        for entry in entries:
            for index, ref in enumerate(entry.experiences):
                if is_resolved(ref):
                    report.skipped += 1
                    continue
                if ref not in fetches:
                    fetches[ref] = asyncio.ensure_future(self.store.get(ref))
                gen = self._next_generation(entry, index)
                pending.append(self._fill_slot(entry, index, ref, gen, fetches[ref], report))

        if pending:
            logger.debug(
                "Resolving %d slot(s) with %d request(s)", len(pending), len(fetches)
            )
            await asyncio.gather(*pending)
        if report.failures:
            logger.warning("%d experience reference(s) unresolved", len(report.failures))
        return report

    async def resolve_entry(self, entry: Entry) -> ResolutionReport:
        return await self.resolve_all_eager([entry])

    async def _fill_slot(
        self,
        entry: Entry,
        index: int,
        ref: str,
        gen: int,
        fetch: asyncio.Future,
        report: ResolutionReport,
    ) -> None:
        try:
            item = await asyncio.shield(fetch)
        except RosterError as e:
            if self._settle(entry, index, gen):
                report.failures.append(SlotFailure(entry.id, index, ref, e))
            else:
                report.stale += 1
            return

        # The slot may have been re-triggered or rewritten meanwhile
        if (
            not self._settle(entry, index, gen)
            or index >= len(entry.experiences)
            or entry.experiences[index] != ref
        ):
            report.stale += 1
            return
        entry.experiences[index] = item
        report.resolved += 1

    async def resolve_for_owner(self, owner_id: str) -> List[Experience]:
        """Experiences the user owns or takes part in, from one query.

        Calls for an owner whose query is still in flight share it.
        """
        task = self._owner_tasks.get(owner_id)
        if task is None:
            task = asyncio.ensure_future(self._query_owner(owner_id))
            self._owner_tasks[owner_id] = task
            task.add_done_callback(lambda _t: self._owner_tasks.pop(owner_id, None))
        items = await asyncio.shield(task)
        return list(items)

    async def _query_owner(self, owner_id: str) -> List[Experience]:
        found = await self.store.list_for_user(owner_id)
        seen = set()
        items: List[Experience] = []
        for exp in found:
            if not exp.involves(owner_id):
                continue
            key = exp.id or id(exp)
            if key in seen:
                continue
            seen.add(key)
            items.append(exp)
        logger.debug("Owner %s: %d experience(s)", owner_id, len(items))
        return items
