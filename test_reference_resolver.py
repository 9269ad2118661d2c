import asyncio

import pytest

from models.entry import Entry, Experience
from utils.exceptions import NotFound
from utils.reference_resolver import ReferenceResolver


@pytest.mark.asyncio
async def test_unresolved_slot_gets_fetched_record(experiences) -> None:
    entries = [Entry(id="u1", experiences=["exp1"]), Entry(id="u2", experiences=[])]
    resolver = ReferenceResolver(experiences)

    report = await resolver.resolve_all_eager(entries)

    assert report.ok
    assert report.resolved == 1
    slot = entries[0].experiences[0]
    assert isinstance(slot, Experience)
    assert slot.id == "exp1"
    assert slot.description == "Pyrenees trek#1"
    assert entries[1].experiences == []


@pytest.mark.asyncio
async def test_one_request_per_distinct_id(experiences) -> None:
    entries = [
        Entry(id="u1", experiences=["exp1", "exp2"]),
        Entry(id="u2", experiences=["exp2"]),
        Entry(id="u3", experiences=["exp2", "exp3"]),
    ]
    report = await ReferenceResolver(experiences).resolve_all_eager(entries)

    assert report.resolved == 5
    assert sorted(experiences.get_calls) == ["exp1", "exp2", "exp3"]
    # Every slot for exp2 holds the same record
    assert entries[0].experiences[1] is entries[1].experiences[0] is entries[2].experiences[0]


@pytest.mark.asyncio
async def test_resolving_twice_is_idempotent(experiences) -> None:
    entry = Entry(id="u1", experiences=["exp1", "exp2"])
    resolver = ReferenceResolver(experiences)

    await resolver.resolve_all_eager([entry])
    first = list(entry.experiences)
    report = await resolver.resolve_entry(entry)

    assert report.skipped == 2
    assert len(entry.experiences) == 2
    assert entry.experiences[0] is first[0]
    assert entry.experiences[1] is first[1]
    assert len(experiences.get_calls) == 2


@pytest.mark.asyncio
async def test_missing_reference_keeps_id_and_batch_continues(experiences) -> None:
    entries = [Entry(id="u1", experiences=["gone", "exp1"]), Entry(id="u2", experiences=["exp3"])]

    report = await ReferenceResolver(experiences).resolve_all_eager(entries)

    assert entries[0].experiences[0] == "gone"
    assert isinstance(entries[0].experiences[1], Experience)
    assert isinstance(entries[1].experiences[0], Experience)
    assert not report.ok
    assert len(report.failures) == 1
    failure = report.failures[0]
    assert (failure.entry_id, failure.index, failure.reference) == ("u1", 0, "gone")
    assert isinstance(failure.error, NotFound)


@pytest.mark.asyncio
async def test_completions_in_any_order_fill_their_own_slots(
    wait_until, make_experience_store
) -> None:
    store = make_experience_store(
        [Experience(id="a", description="A"), Experience(id="b", description="B")], hold=True
    )
    entry = Entry(id="u1", experiences=["a", "b"])
    task = asyncio.ensure_future(ReferenceResolver(store).resolve_all_eager([entry]))
    await wait_until(lambda: len(store.pending) == 2)

    store.pending[1].set()
    await wait_until(lambda: isinstance(entry.experiences[1], Experience))
    # Other slot is untouched until its own response arrives
    assert entry.experiences[0] == "a"

    store.pending[0].set()
    report = await task
    assert report.resolved == 2
    assert [e.id for e in entry.experiences] == ["a", "b"]


@pytest.mark.asyncio
async def test_stale_resolution_is_discarded(wait_until, make_experience_store) -> None:
    store = make_experience_store([Experience(id="exp1", description="Trek")], hold=True)
    entry = Entry(id="u1", experiences=["exp1"])
    resolver = ReferenceResolver(store)

    first = asyncio.ensure_future(resolver.resolve_all_eager([entry]))
    await wait_until(lambda: len(store.pending) == 1)
    second = asyncio.ensure_future(resolver.resolve_all_eager([entry]))
    await wait_until(lambda: len(store.pending) == 2)

    # The older request answers last; its result must not win
    store.pending[1].set()
    second_report = await second
    store.pending[0].set()
    first_report = await first

    assert entry.experiences[0].description == "Trek#2"
    assert second_report.resolved == 1
    assert first_report.resolved == 0
    assert first_report.stale == 1


@pytest.mark.asyncio
async def test_stale_resolution_discarded_when_older_answers_first(
    wait_until, make_experience_store
) -> None:
    store = make_experience_store([Experience(id="exp1", description="Trek")], hold=True)
    entry = Entry(id="u1", experiences=["exp1"])
    resolver = ReferenceResolver(store)

    first = asyncio.ensure_future(resolver.resolve_all_eager([entry]))
    await wait_until(lambda: len(store.pending) == 1)
    second = asyncio.ensure_future(resolver.resolve_all_eager([entry]))
    await wait_until(lambda: len(store.pending) == 2)

    store.pending[0].set()
    assert (await first).stale == 1
    assert entry.experiences[0] == "exp1"
    store.pending[1].set()
    await second
    assert entry.experiences[0].description == "Trek#2"


@pytest.mark.asyncio
async def test_owner_query_only_returns_involved_experiences(experiences) -> None:
    items = await ReferenceResolver(experiences).resolve_for_owner("u1")
    # exp1 owned by u1, exp2 has u1 as participant, exp3 involves neither
    assert [e.id for e in items] == ["exp1", "exp2"]


@pytest.mark.asyncio
async def test_owner_query_drops_duplicates(make_experience_store) -> None:
    class Repeating(make_experience_store):
        async def list_for_user(self, user_id):
            found = await super().list_for_user(user_id)
            return found + found

    store = Repeating([Experience(id="exp1", owner="u1")])
    items = await ReferenceResolver(store).resolve_for_owner("u1")
    assert [e.id for e in items] == ["exp1"]


@pytest.mark.asyncio
async def test_concurrent_owner_queries_share_one_request(
    wait_until, make_experience_store
) -> None:
    store = make_experience_store([Experience(id="exp1", owner="u1")], hold=True)
    resolver = ReferenceResolver(store)

    first = asyncio.ensure_future(resolver.resolve_for_owner("u1"))
    second = asyncio.ensure_future(resolver.resolve_for_owner("u1"))
    await wait_until(lambda: len(store.pending) == 1)
    store.pending[0].set()
    a, b = await asyncio.gather(first, second)

    assert store.owner_calls == ["u1"]
    assert [e.id for e in a] == [e.id for e in b] == ["exp1"]
    # Callers get their own lists
    assert a is not b

    # Once settled, a new toggle queries again
    store.hold = False
    await resolver.resolve_for_owner("u1")
    assert store.owner_calls == ["u1", "u1"]
