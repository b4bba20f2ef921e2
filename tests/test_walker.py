"""Tests for the bounded walker."""

import asyncio
import gc
from contextlib import aclosing

import pytest

from repo_linecount.domain.exceptions import (
    FetchError,
    RemoteError,
    RepositoryNotFoundError,
    WalkError,
)
from repo_linecount.services.walker import BoundedWalker


def _collect(walker, revision="main"):
    async def run():
        return [outcome async for outcome in walker.walk(revision)]

    return asyncio.run(run())


def _paths(n):
    return [f"src/file_{i}.py" for i in range(n)]


def test_scenario_skips_trees(repo, make_fetcher, entries):
    fetcher = make_fetcher([entries.blob("a.rs"), entries.tree("b/"), entries.blob("b/c.py")])
    outcomes = _collect(BoundedWalker(fetcher, repo))

    assert sorted(o.path for o in outcomes) == ["a.rs", "b/c.py"]
    assert sorted(fetcher.fetched) == ["a.rs", "b/c.py"]
    assert "b/" not in fetcher.fetched


def test_submodules_are_not_fetched(repo, make_fetcher, entries):
    fetcher = make_fetcher([entries.blob("README.md"), entries.submodule("vendor/lib")])
    outcomes = _collect(BoundedWalker(fetcher, repo))

    assert [o.path for o in outcomes] == ["README.md"]
    assert fetcher.fetched == ["README.md"]


@pytest.mark.parametrize("concurrency", [1, 10, 15])
def test_count_conservation(repo, make_fetcher, entries, concurrency):
    paths = _paths(10)
    listing = [entries.tree("src")] + [entries.blob(p) for p in paths] + [entries.submodule("ext")]
    fetcher = make_fetcher(listing, delays={p: 0.001 * (i % 3) for i, p in enumerate(paths)})

    outcomes = _collect(BoundedWalker(fetcher, repo, concurrency))

    assert len(outcomes) == len(paths)
    assert sorted(o.path for o in outcomes) == sorted(paths)
    assert sorted(fetcher.fetched) == sorted(paths)
    assert fetcher.tree_calls == 1


def test_pairing_survives_reversed_latency(repo, make_fetcher, entries):
    paths = _paths(8)
    fetcher = make_fetcher(
        [entries.blob(p) for p in paths],
        contents={p: f"body of {p}" for p in paths},
        delays={p: 0.01 * (len(paths) - i) for i, p in enumerate(paths)},
    )

    outcomes = _collect(BoundedWalker(fetcher, repo, concurrency=len(paths)))

    # Last submitted finishes first.
    assert [o.path for o in outcomes] == list(reversed(paths))
    for outcome in outcomes:
        assert outcome.ok
        assert outcome.blob.path == outcome.path
        assert outcome.blob.content == f"body of {outcome.path}"


def test_ordered_mode_restores_listing_order(repo, make_fetcher, entries):
    paths = _paths(8)
    fetcher = make_fetcher(
        [entries.blob(p) for p in paths],
        delays={p: 0.005 * (len(paths) - i) for i, p in enumerate(paths)},
    )

    outcomes = _collect(BoundedWalker(fetcher, repo, concurrency=3, ordered=True))

    assert [o.path for o in outcomes] == paths
    assert all(o.blob.content == f"content of {o.path}\n" for o in outcomes)
    assert fetcher.max_in_flight <= 3


@pytest.mark.parametrize("ordered", [False, True])
def test_concurrency_ceiling(repo, make_fetcher, entries, ordered):
    paths = _paths(20)
    fetcher = make_fetcher([entries.blob(p) for p in paths], delays={p: 0.005 for p in paths})

    outcomes = _collect(BoundedWalker(fetcher, repo, concurrency=4, ordered=ordered))

    assert len(outcomes) == 20
    assert fetcher.max_in_flight == 4


def test_single_failure_is_contained(repo, make_fetcher, entries):
    paths = _paths(6)
    fetcher = make_fetcher([entries.blob(p) for p in paths], failures={paths[3]})

    outcomes = _collect(BoundedWalker(fetcher, repo, concurrency=2))

    assert len(outcomes) == 6
    failed = [o for o in outcomes if not o.ok]
    assert len(failed) == 1
    assert failed[0].path == paths[3]
    assert failed[0].blob is None
    assert isinstance(failed[0].error, FetchError)
    assert failed[0].error.path == paths[3]
    assert isinstance(failed[0].error.cause, RemoteError)
    assert sum(o.ok for o in outcomes) == 5


def test_listing_failure_is_fatal(repo, make_fetcher, entries):
    fetcher = make_fetcher(
        [entries.blob("a.py")],
        tree_error=RepositoryNotFoundError("no such revision"),
    )
    received = []

    async def run():
        async for outcome in BoundedWalker(fetcher, repo).walk("nope"):
            received.append(outcome)

    with pytest.raises(WalkError) as excinfo:
        asyncio.run(run())

    assert received == []
    assert fetcher.fetched == []
    assert isinstance(excinfo.value.cause, RepositoryNotFoundError)
    assert excinfo.value.revision == "nope"


def test_empty_tree(repo, make_fetcher, entries):
    fetcher = make_fetcher([entries.tree("docs")])
    assert _collect(BoundedWalker(fetcher, repo)) == []


@pytest.mark.parametrize("concurrency", [0, -1])
def test_rejects_non_positive_concurrency(repo, make_fetcher, concurrency):
    with pytest.raises(ValueError):
        BoundedWalker(make_fetcher([]), repo, concurrency)


@pytest.mark.parametrize("ordered", [False, True])
def test_early_close_cancels_in_flight_fetches(repo, make_fetcher, entries, ordered):
    paths = _paths(10)
    delays = {p: 30.0 for p in paths}
    delays[paths[0]] = 0
    fetcher = make_fetcher([entries.blob(p) for p in paths], delays=delays)
    walker = BoundedWalker(fetcher, repo, concurrency=4, ordered=ordered)

    async def run():
        async with aclosing(walker.walk("main")) as outcomes:
            async for outcome in outcomes:
                return outcome

    first = asyncio.run(asyncio.wait_for(run(), timeout=5))

    assert first.path == paths[0]
    assert fetcher.in_flight == 0
    assert paths[0] not in fetcher.cancelled
    assert set(fetcher.fetched) <= set(paths[:5])
    assert set(fetcher.cancelled) == set(fetcher.fetched) - {paths[0]}
    assert len(fetcher.cancelled) >= 3


def test_unexpected_errors_propagate(repo, make_fetcher, entries):
    fetcher = make_fetcher([entries.blob("a.py"), entries.blob("b.py")], delays={"b.py": 30.0})

    async def broken(repo, revision, path):
        if path == "a.py":
            raise KeyError(path)
        return await type(fetcher).fetch_raw(fetcher, repo, revision, path)

    fetcher.fetch_raw = broken

    with pytest.raises(KeyError):
        asyncio.run(asyncio.wait_for(_consume(BoundedWalker(fetcher, repo)), timeout=5))
    assert fetcher.in_flight == 0

def test_failed_batch_is_fully_retrieved(repo, make_fetcher, entries):
    fetcher = make_fetcher([entries.blob("a.py"), entries.blob("b.py"), entries.blob("c.py")])

    async def broken(repo, revision, path):
        raise KeyError(path)

    fetcher.fetch_raw = broken
    reported = []

    async def run():
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda loop, context: reported.append(context))
        with pytest.raises(KeyError):
            await _consume(BoundedWalker(fetcher, repo))

    asyncio.run(run())
    gc.collect()
    assert reported == []


async def _consume(walker):
    async with aclosing(walker.walk("main")) as outcomes:
        async for _ in outcomes:
            pass
