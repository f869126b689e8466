import asyncio
import json

import pytest

from chunksearch.engine import Engine
from chunksearch.models import ChunkDescriptor
from chunksearch.scheduler import ImmediateScheduler
from chunksearch.sink import RecordingSink
from chunksearch.transport.memory_transport import MemoryTransport

TABLE = [
    ChunkDescriptor("chunk_0001.ndjson", "!", "lock"),
    ChunkDescriptor("chunk_0002.ndjson", "lock", "master"),
    ChunkDescriptor("chunk_0003.ndjson", "n", "zzz"),
]


def _payload(*marks) -> str:
    lines = [json.dumps({"schema": ["mk", "sn"]})]
    lines += [json.dumps([m, str(i)]) for i, m in enumerate(marks)]
    return "\n".join(lines) + "\n"


def _seed() -> MemoryTransport:
    return MemoryTransport({
        "chunk_0001.ndjson": _payload("acme lock", "bolt"),
        "chunk_0002.ndjson": _payload("lock master", "master lock", "the master key", "massive"),
        "chunk_0003.ndjson": _payload("zebra"),
    })


def _engine(transport=None, **kw):
    sink = RecordingSink()
    sched = ImmediateScheduler()
    opts = dict(sink=sink, scheduler=sched, min_loading_time=0.0)
    opts.update(kw)
    eng = Engine.create("memory://", table=TABLE, transport=transport or _seed(), **opts)
    asyncio.run(eng.initialize())
    return eng, sink, sched


@pytest.mark.e2e
def test_search_ranks_prefix_before_substring():
    eng, sink, _ = _engine()
    ranked = asyncio.run(eng.search("  MAS "))
    assert [(m.score, m.row["mk"]) for m in ranked] == [
        (2, "master lock"),
        (2, "massive"),
        (1, "lock master"),
        (1, "the master key"),
    ]
    assert [r["mk"] for r in sink.visible] == [m.row["mk"] for m in ranked]
    assert sink.last_status == "Showing 4 of 4 results"
    assert sink.can_reveal_more is False
    assert eng.searching is False
    assert eng.session.query == "mas"


@pytest.mark.e2e
def test_only_resolved_chunks_are_fetched():
    t = _seed()
    eng, _, _ = _engine(t)
    asyncio.run(eng.search("mas"))
    assert t.fetched == ["chunk_0002.ndjson"]


@pytest.mark.e2e
def test_short_query_rejected_without_side_effects():
    t = _seed()
    eng, sink, _ = _engine(t)
    asyncio.run(eng.search("master"))
    fetched = list(t.fetched)
    visible = list(sink.visible)

    assert asyncio.run(eng.search(" m ")) is None
    assert sink.last_status == "Please enter at least 2 characters"
    assert t.fetched == fetched
    assert sink.visible == visible
    assert eng.session.query == "master"


@pytest.mark.e2e
def test_no_candidate_chunks_means_no_results():
    eng, sink, _ = _engine()
    eng.resolver.table = (ChunkDescriptor("chunk_0009.ndjson", "x", "y"),)
    t = eng.store.transport
    assert asyncio.run(eng.search("ab")) == []
    assert sink.last_status == "No results found in the database."
    assert t.fetched == []
    assert eng.searching is False
    assert sink.is_loading is False


@pytest.mark.e2e
def test_matching_chunks_without_hits_report_no_results():
    eng, sink, _ = _engine()
    assert asyncio.run(eng.search("qqq")) == []
    assert sink.last_status == "No results found."
    assert sink.can_reveal_more is False


@pytest.mark.e2e
def test_unavailable_chunk_is_skipped():
    t = _seed()
    t.failing.add("chunk_0001.ndjson")
    eng, sink, _ = _engine(t)
    ranked = asyncio.run(eng.search("lock"))
    # chunk 1 failed, chunk 2 still searched
    assert [m.row["mk"] for m in ranked] == ["lock master", "master lock"]
    assert "Searching chunk_0002.ndjson..." in sink.statuses()
    assert eng.searching is False


@pytest.mark.e2e
def test_running_status_after_each_chunk():
    eng, sink, _ = _engine()
    asyncio.run(eng.search("lock"))
    s = sink.statuses()
    i = s.index("Locating data chunks...")
    assert s[i + 1:i + 5] == [
        "Searching chunk_0001.ndjson...",
        "Found 1 matches so far",
        "Searching chunk_0002.ndjson...",
        "Found 3 matches so far",
    ]


@pytest.mark.e2e
def test_concurrent_search_is_ignored():
    t = _seed()
    eng, sink, _ = _engine(t)

    async def run():
        t.gate = asyncio.Event()
        first = asyncio.ensure_future(eng.search("mas"))
        await asyncio.sleep(0)
        assert eng.searching
        second = await eng.search("lock")
        t.gate.set()
        return await first, second

    first, second = asyncio.run(run())
    assert second is None
    assert len(first) == 4
    assert t.fetched == ["chunk_0002.ndjson"]
    assert eng.session.query == "mas"


@pytest.mark.e2e
def test_same_query_twice_is_identical_and_cached():
    t = _seed()
    eng, sink, _ = _engine(t)
    a = asyncio.run(eng.search("lock"))
    first_visible = list(sink.visible)
    b = asyncio.run(eng.search("lock"))
    assert a == b
    assert sink.visible == first_visible
    assert t.fetched == ["chunk_0001.ndjson", "chunk_0002.ndjson"]


@pytest.mark.e2e
def test_minimum_loading_time_pads_fast_searches():
    eng, _, sched = _engine(min_loading_time=0.8)
    asyncio.run(eng.search("mas"))
    assert sched.sleeps[0] == pytest.approx(0.8)


@pytest.mark.e2e
def test_minimum_loading_time_not_added_to_slow_searches():
    t = _seed()
    sched = ImmediateScheduler()
    original_fetch = t.fetch

    async def slow_fetch(path):
        sched.advance(1.0)
        return await original_fetch(path)

    t.fetch = slow_fetch
    eng, _, _ = _engine(t, scheduler=sched, min_loading_time=0.8)
    asyncio.run(eng.search("mas"))
    assert sched.sleeps == []


@pytest.mark.e2e
def test_reveal_more_pages_through_results():
    marks = [f"lock {i:03d}" for i in range(120)]
    t = MemoryTransport({"chunk_0002.ndjson": _payload(*marks)})
    eng, sink, _ = _engine(t, page_size=50, batch_size=10)

    asyncio.run(eng.search("lock"))
    assert eng.pager.revealed_count == 50 and sink.can_reveal_more
    assert asyncio.run(eng.reveal_more()) == 50
    assert asyncio.run(eng.reveal_more()) == 20
    assert sink.can_reveal_more is False
    assert asyncio.run(eng.reveal_more()) == 0
    assert [r["mk"] for r in sink.visible] == marks


@pytest.mark.e2e
def test_new_query_resets_reveal_state():
    marks = [f"lock {i:03d}" for i in range(60)]
    t = MemoryTransport({
        "chunk_0002.ndjson": _payload(*marks),
        "chunk_0003.ndjson": _payload("zebra"),
    })
    eng, sink, _ = _engine(t)
    asyncio.run(eng.search("lock"))
    asyncio.run(eng.reveal_more())
    assert eng.pager.revealed_count == 60

    asyncio.run(eng.search("zebra"))
    assert eng.session.reveal.page == 1
    assert eng.pager.revealed_count == 1
    assert [r["mk"] for r in sink.visible] == ["zebra"]


@pytest.mark.e2e
def test_search_before_initialize_is_refused():
    sink = RecordingSink()
    eng = Engine.create("memory://", table=TABLE, transport=_seed(), sink=sink,
                        scheduler=ImmediateScheduler(), min_loading_time=0.0)
    assert asyncio.run(eng.search("mas")) is None
    assert sink.last_status == "Error: Database index missing."


@pytest.mark.e2e
def test_empty_table_is_not_ready():
    sink = RecordingSink()
    eng = Engine.create("memory://", table=[], transport=_seed(), sink=sink)
    assert asyncio.run(eng.initialize()) is False
    assert sink.last_status == "Error: Database index missing."
    assert asyncio.run(eng.search("mas")) is None


@pytest.mark.e2e
def test_create_needs_exactly_one_strategy():
    with pytest.raises(ValueError):
        Engine.create("memory://")
    with pytest.raises(ValueError):
        Engine.create("memory://", table=TABLE, probe=(1, 3))
    with pytest.raises(ValueError):
        Engine.create("ftp://nowhere", table=TABLE)


@pytest.mark.e2e
def test_shutdown_clears_cache_and_session():
    eng, _, _ = _engine()
    asyncio.run(eng.search("mas"))
    assert len(eng.store) == 1
    eng.shutdown()
    assert len(eng.store) == 0
    assert eng.session.results == []
    assert eng.pager.total == 0


@pytest.mark.e2e
def test_pathologically_nested_line_does_not_abort_search():
    t = MemoryTransport({"chunk_0002.ndjson": "[" * 200000 + "\n" + _payload("master lock")})
    eng, sink, _ = _engine(t)
    ranked = asyncio.run(eng.search("master"))
    assert [m.row["mk"] for m in ranked] == ["master lock"]
    assert sink.last_status == "Showing 1 of 1 results"


@pytest.mark.e2e
def test_new_search_supersedes_a_page_still_being_revealed():
    aa = [f"aa {i:03d}" for i in range(120)]
    bb = [f"bb {i:03d}" for i in range(30)]
    t = MemoryTransport({"chunk_0001.ndjson": _payload(*(aa + bb))})
    sink = RecordingSink()
    eng = Engine.create(
        "memory://", table=[ChunkDescriptor("chunk_0001.ndjson", "!", "zzz")], transport=t,
        sink=sink, scheduler=ImmediateScheduler(), min_loading_time=0.0,
    )

    async def scenario():
        await eng.initialize()
        await eng.search("aa")
        more = asyncio.ensure_future(eng.reveal_more())
        await asyncio.sleep(0)          # second page is mid-pause after its first batch
        ranked = await eng.search("bb")
        return ranked, await more

    ranked, stale_shown = asyncio.run(scenario())
    assert len(ranked) == 30
    assert stale_shown == 10
    assert [r["mk"] for r in sink.visible] == bb
    assert eng.pager.revealed_count == 30
    assert sink.last_status == "Showing 30 of 30 results"
    assert sink.can_reveal_more is False
    assert eng.pager.busy is False
