"""Tests for the HTTP interface."""

import pytest
from fastapi.testclient import TestClient

from repo_linecount.domain.exceptions import RepositoryNotFoundError
from repo_linecount.infrastructure.pattern_line_counter import PatternLineCounter
from repo_linecount.interface.app import create_app
from repo_linecount.interface.dependencies import get_use_case
from repo_linecount.services.repository_statistics import RepositoryStatisticsUseCase


@pytest.fixture
def client_for():
    def build(fetcher):
        app = create_app()
        app.dependency_overrides[get_use_case] = lambda: RepositoryStatisticsUseCase(
            fetcher, PatternLineCounter(), concurrency=4
        )
        return TestClient(app)

    return build


@pytest.fixture
def fetcher(make_fetcher, entries):
    return make_fetcher(
        [entries.blob("main.py"), entries.tree("pkg"), entries.blob("pkg/core.rs"), entries.blob("bad.py")],
        contents={"main.py": "# run\nmain()\n", "pkg/core.rs": "fn a() {}\n\nfn b() {}\n"},
        failures={"bad.py"},
    )


def test_statistics(client_for, fetcher):
    resp = client_for(fetcher).post(
        "/statistics", json={"github_url": "https://github.com/octo/demo", "revision": "v1.0"}
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["repository"] == "https://github.com/octo/demo"
    assert data["revision"] == "v1.0"
    assert list(data["languages"]) == ["Rust", "Python"]
    assert data["languages"]["Python"] == {
        "files": 1,
        "lines": 2,
        "code": 1,
        "comments": 1,
        "blanks": 0,
    }
    assert data["total"]["code"] == 3
    assert data["files_counted"] == 2
    assert data["files_skipped"] == 1
    assert list(data["skipped"]) == ["bad.py"]


def test_default_revision(client_for, fetcher):
    resp = client_for(fetcher).post(
        "/statistics", json={"github_url": "https://github.com/octo/demo", "revision": " "}
    )
    assert resp.status_code == 200
    assert resp.json()["revision"] == "main"


def test_abort_policy(client_for, fetcher):
    resp = client_for(fetcher).post(
        "/statistics",
        json={"github_url": "https://github.com/octo/demo", "failure_policy": "abort"},
    )
    assert resp.status_code == 502
    assert resp.json()["status"] == "error"
    assert "bad.py" in resp.json()["message"]


def test_invalid_host(client_for, fetcher):
    resp = client_for(fetcher).post("/statistics", json={"github_url": "https://gitlab.com/a/b"})
    assert resp.status_code == 422
    assert resp.json()["status"] == "error"
    assert fetcher.tree_calls == 0


def test_empty_url(client_for, fetcher):
    resp = client_for(fetcher).post("/statistics", json={"github_url": "  "})
    assert resp.status_code == 422


def test_unknown_revision(client_for, make_fetcher, entries):
    fetcher = make_fetcher([entries.blob("a.py")], tree_error=RepositoryNotFoundError("Not Found"))
    resp = client_for(fetcher).post(
        "/statistics", json={"github_url": "https://github.com/octo/demo", "revision": "nope"}
    )
    assert resp.status_code == 404
    assert fetcher.fetched == []


def test_health(client_for, fetcher):
    assert client_for(fetcher).get("/health").json() == {"status": "ok"}


def test_statistics_by_name(client_for, fetcher):
    resp = client_for(fetcher).get(
        "/repos/octo/demo/statistics", params={"revision": "abc", "failure_policy": "skip"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["repository"] == "https://github.com/octo/demo"
    assert data["revision"] == "abc"
    assert data["files_skipped"] == 1
