"""Shared test fixtures for the harperf test suite."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# HAR builders
# =============================================================================


def make_entry(
    url: str,
    *,
    method: str = "GET",
    time: Any = 100,
    status: Any = 200,
    status_text: str = "OK",
    mime_type: str = "",
    body_size: Any = 0,
    started: str | None = None,
) -> dict[str, Any]:
    """Build one HAR entry object."""
    entry: dict[str, Any] = {
        "time": time,
        "request": {"method": method, "url": url},
        "response": {
            "status": status,
            "statusText": status_text,
            "bodySize": body_size,
            "content": {"mimeType": mime_type},
        },
    }
    if started is not None:
        entry["startedDateTime"] = started
    return entry


def make_har(entries: list[Any]) -> str:
    """Wrap entries in a HAR document and serialize it."""
    return json.dumps({"log": {"version": "1.2", "entries": entries}})


def scenario_entries() -> list[dict[str, Any]]:
    """Three-request page load: a script, a failing API call, and an image."""
    return [
        make_entry(
            "https://shop.example.com/static/app.js",
            time=100,
            mime_type="application/javascript",
            body_size=5000,
            started="2024-05-01T10:00:00.000Z",
        ),
        make_entry(
            "https://shop.example.com/api/users?id=7",
            time=200,
            status=500,
            status_text="Internal Server Error",
            mime_type="application/json",
            body_size=120,
            started="2024-05-01T10:00:00.100Z",
        ),
        make_entry(
            "https://shop.example.com/img/logo.png",
            time=300,
            mime_type="image/png",
            body_size=20000,
            started="2024-05-01T10:00:00.200Z",
        ),
    ]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scenario_har() -> str:
    """Serialized three-request HAR document."""
    return make_har(scenario_entries())


@pytest.fixture
def scenario_file(tmp_path: Path, scenario_har: str) -> Path:
    """Three-request HAR document written to disk."""
    path = tmp_path / "checkout.har"
    path.write_text(scenario_har)
    return path


@pytest.fixture
def empty_har_file(tmp_path: Path) -> Path:
    """HAR file with no entries."""
    path = tmp_path / "empty.har"
    path.write_text(make_har([]))
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep HARPERF_* variables from the outer shell out of every test."""
    for name in (
        "HARPERF_SLOW_LIMIT",
        "HARPERF_LARGEST_LIMIT",
        "HARPERF_API_MARKERS",
        "HARPERF_THRESHOLD_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
