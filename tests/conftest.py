import pytest

from forecaster.infrastructure.adapters.file_adapter import JSONFileAdapter
from forecaster.infrastructure.repositories.json_gameweek_repository import (
    JSONGameweekRepository,
)

from .factories import NOW, SEASON


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def file_adapter(tmp_path):
    return JSONFileAdapter(str(tmp_path))


@pytest.fixture
def gameweek_repo(file_adapter):
    return JSONGameweekRepository(file_adapter, SEASON)


@pytest.fixture
def write_gameweek(file_adapter):
    """Write raw gameweek documents; ``None`` leaves a file absent."""

    def _write(name, matches=None, predictions=None, results=None, evaluation=None):
        base = f"gameweeks/{SEASON}/{name}"
        for filename, data in (
            ("matches.json", matches),
            ("predictions.json", predictions),
            ("results.json", results),
            ("evaluation.json", evaluation),
        ):
            if data is not None:
                file_adapter.write_json(data, f"{base}/{filename}")

    return _write


@pytest.fixture
def list_files(tmp_path):
    def _list():
        return sorted(str(p.relative_to(tmp_path)) for p in tmp_path.rglob("*") if p.is_file())

    return _list
