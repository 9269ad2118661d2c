"""Shared fixtures: in-memory stores and a client for the bundled API."""

import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Repo root for models/utils, backend/ for the `app` package
ROOT = Path(__file__).resolve().parent
for path in (ROOT, ROOT / "backend"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from models.entry import Entry, Experience  # noqa: E402
from utils.exceptions import NotFound, RosterError  # noqa: E402
from utils.reference_resolver import ReferenceResolver  # noqa: E402
from utils.remote_store import RemoteStore  # noqa: E402
from utils.roster_manager import RosterController  # noqa: E402


class FakeUserStore(RemoteStore[Entry]):
    """Users kept in a dict; records every call and can fail on demand."""

    def __init__(self, entries: Optional[List[Entry]] = None):
        self.items: Dict[str, Entry] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[str, RosterError] = {}
        for entry in entries or []:
            self.items[entry.id] = entry
        self._next = len(self.items) + 1

    def _new_id(self) -> str:
        item_id = f"u{self._next}"
        self._next += 1
        return item_id

    def _check(self, op: str) -> None:
        error = self.failures.pop(op, None)
        if error is not None:
            raise error

    async def list(self) -> List[Entry]:
        self.calls.append(("list",))
        self._check("list")
        return [e.copy() for e in self.items.values()]

    async def get(self, item_id: str) -> Entry:
        self.calls.append(("get", item_id))
        self._check("get")
        if item_id not in self.items:
            raise NotFound("users", item_id)
        return self.items[item_id].copy()

    async def create(self, draft: Entry) -> Entry:
        self.calls.append(("create", draft.name))
        self._check("create")
        created = draft.copy()
        created.id = self._new_id()
        self.items[created.id] = created
        return created.copy()

    async def update(self, entity: Entry) -> Entry:
        self.calls.append(("update", entity.id))
        self._check("update")
        if entity.id not in self.items:
            raise NotFound("users", entity.id)
        self.items[entity.id] = entity.copy()
        return entity.copy()

    async def delete(self, item_id: str) -> None:
        self.calls.append(("delete", item_id))
        self._check("delete")
        if item_id not in self.items:
            raise NotFound("users", item_id)
        del self.items[item_id]


class FakeExperienceStore(RemoteStore[Experience]):
    """Experiences in a dict.

    With ``hold=True`` every ``get``/``list_for_user`` waits on an event
    appended to ``pending`` so tests can choose the completion order.
    """

    def __init__(self, items: Optional[List[Experience]] = None, hold: bool = False):
        self.items: Dict[str, Experience] = {e.id: e for e in items or []}
        self.hold = hold
        self.pending: List[asyncio.Event] = []
        self.get_calls: List[str] = []
        self.owner_calls: List[str] = []
        self.versions: Dict[str, int] = {}

    async def _wait(self) -> None:
        if self.hold:
            event = asyncio.Event()
            self.pending.append(event)
            await event.wait()

    async def list(self) -> List[Experience]:
        return list(self.items.values())

    async def get(self, item_id: str) -> Experience:
        self.get_calls.append(item_id)
        version = self.versions.get(item_id, 0) + 1
        self.versions[item_id] = version
        await self._wait()
        if item_id not in self.items:
            raise NotFound("experiences", item_id)
        base = self.items[item_id]
        # A fresh object per call, tagged with the call number
        return Experience(
            id=base.id,
            description=f"{base.description}#{version}",
            date=base.date,
            owner=base.owner,
            participants=list(base.participants),
        )

    async def create(self, draft: Experience) -> Experience:
        raise NotImplementedError

    async def update(self, entity: Experience) -> Experience:
        raise NotImplementedError

    async def delete(self, item_id: str) -> None:
        self.items.pop(item_id, None)

    async def list_for_user(self, user_id: str) -> List[Experience]:
        # Unfiltered on purpose: the resolver must not trust the server filter
        self.owner_calls.append(user_id)
        await self._wait()
        return list(self.items.values())


async def _wait_until(predicate, attempts: int = 100) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def wait_until():
    """Let the event loop run until ``predicate()`` holds."""
    return _wait_until


@pytest.fixture
def experiences():
    return FakeExperienceStore(
        [
            Experience(id="exp1", description="Pyrenees trek", owner="u1"),
            Experience(id="exp2", description="Sailing week", owner="u2", participants=["u1"]),
            Experience(id="exp3", description="Choir tour", owner="u3"),
        ]
    )


@pytest.fixture
def users():
    return FakeUserStore(
        [
            Entry(id="u1", name="Anna", mail="anna@example.com", password="a",
                  comment="Hiker", experiences=["exp1", "exp2"]),
            Entry(id="u2", name="Bob", mail="bob@example.com", password="b",
                  comment="Sailor", experiences=[]),
            Entry(id="u3", name="Carla", mail="carla@example.com", password="c",
                  comment="Singer", experiences=["exp3"]),
        ]
    )


@pytest.fixture
def prompts():
    """Messages passed to confirm/notify, and the answer confirm gives."""
    return {"confirm": [], "notify": [], "answer": True}


@pytest.fixture
def make_controller(users, experiences, prompts):
    def factory(mode: str = "eager") -> RosterController:
        def confirm(message: str) -> bool:
            prompts["confirm"].append(message)
            return prompts["answer"]

        return RosterController(
            users,
            ReferenceResolver(experiences),
            mode=mode,
            confirm=confirm,
            notify=prompts["notify"].append,
        )

    return factory


@pytest_asyncio.fixture
async def api_client():
    from app.main import app
    from app.services.store import store

    store.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    store.reset()


@pytest.fixture
def make_experience_store():
    """The in-memory experience store class, for tests that need their own."""
    return FakeExperienceStore
