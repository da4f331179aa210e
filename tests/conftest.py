from __future__ import annotations

from pathlib import Path

import pytest

from place_ranker.config import (
    ENV_DB_PATH,
    ENV_DEDUPE_SPONSORED,
    ENV_DEFAULT_LIMIT,
    ENV_MAX_SPONSORED_PER_CATEGORY,
    ENV_MAX_SPONSORED_PER_VIEWPORT,
    ENV_QUALITY_FLOOR,
)
from place_ranker.storage import DuckDBVenueStore

from factories import FixedClock


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in (
        ENV_DB_PATH,
        ENV_MAX_SPONSORED_PER_VIEWPORT,
        ENV_MAX_SPONSORED_PER_CATEGORY,
        ENV_QUALITY_FLOOR,
        ENV_DEFAULT_LIMIT,
        ENV_DEDUPE_SPONSORED,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "places.duckdb")


@pytest.fixture()
def store(db_path: str):
    storage = DuckDBVenueStore(db_path)
    yield storage
    storage.close()
