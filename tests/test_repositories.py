import pytest

from forecaster.domains.ratings.entities import RatingBook, TeamRating
from forecaster.domains.shared.exceptions import (
    ArtifactNotFoundException,
    InvalidMatchDataException,
    StorageException,
)
from forecaster.domains.weights.entities import EnsembleWeights
from forecaster.infrastructure.repositories.json_memory_repositories import (
    JSONBiasRepository,
    JSONChangeLogRepository,
    JSONPerformanceLogRepository,
    JSONRatingRepository,
    JSONWeightRepository,
)

from .factories import match_dict, result_dict


def test_write_json_is_atomic_and_creates_parents(file_adapter, tmp_path):
    file_adapter.write_json({"a": 1}, "deep/nested/doc.json")

    assert file_adapter.read_json("deep/nested/doc.json") == {"a": 1}
    assert [p.name for p in (tmp_path / "deep" / "nested").iterdir()] == ["doc.json"]


def test_read_json_missing_returns_default(file_adapter):
    assert file_adapter.read_json("nope.json", default=[]) == []


def test_read_json_corrupt_raises(file_adapter, tmp_path):
    (tmp_path / "bad.json").write_text("{not json")

    with pytest.raises(StorageException):
        file_adapter.read_json("bad.json")


def test_gameweeks_sorted_numerically(gameweek_repo, write_gameweek, tmp_path):
    for name in ("GW10", "GW2", "GW1"):
        write_gameweek(name, matches=[])
    (tmp_path / "gameweeks" / "2025-26" / "notes").mkdir()

    assert gameweek_repo.list_gameweeks() == ["GW1", "GW2", "GW10"]


def test_gameweek_artifacts(gameweek_repo, write_gameweek):
    write_gameweek("GW3", matches=[match_dict(1), match_dict(2)], results=[result_dict(1, 2, 1)])

    assert gameweek_repo.has_matches("GW3")
    assert not gameweek_repo.has_predictions("GW3")
    assert [m.fixture_id for m in gameweek_repo.get_matches("GW3")] == [1, 2]
    assert gameweek_repo.get_results("GW3")[0].score == "2-1"
    assert gameweek_repo.get_evaluation("GW3") is None
    assert gameweek_repo.list_evaluations() == []

    with pytest.raises(ArtifactNotFoundException):
        gameweek_repo.get_predictions("GW3")


def test_rating_repository_round_trip(file_adapter):
    repo = JSONRatingRepository(file_adapter)
    book = repo.load()
    assert book.ratings == {}

    book.ratings["42"] = TeamRating("42", "Arsenal", 1620, "Premier League", "2026-02-01")
    book.mark_processed("2025-26/GW1")
    repo.save(book)

    stored = file_adapter.read_json("memory/elo-ratings.json")
    assert stored["lastEvaluatedGW"] == "2025-26/GW1"
    assert stored["ratings"]["42"]["rating"] == 1620

    reloaded = repo.load()
    assert reloaded.rating_for("42") == 1620
    assert repo.has_processed("2025-26/GW1")


def test_rating_repository_reads_legacy_marker(file_adapter):
    file_adapter.write_json(
        {"ratings": {}, "lastEvaluatedGW": "2025-26/GW7"}, "memory/elo-ratings.json"
    )
    book = JSONRatingRepository(file_adapter).load()

    assert isinstance(book, RatingBook)
    assert book.has_processed("2025-26/GW7")


def test_weight_repository_preserves_other_keys(file_adapter):
    file_adapter.write_json(
        {"modelWeights": {"elo": 0.2, "poisson": 0.3, "odds": 0.5}, "notes": "keep me"},
        "memory/signal-weights.json",
    )
    repo = JSONWeightRepository(file_adapter)

    weights = repo.load()
    assert weights.goal_model == 0.3

    repo.save(EnsembleWeights(0.25, 0.35, 0.40))
    stored = file_adapter.read_json("memory/signal-weights.json")
    assert stored["notes"] == "keep me"
    assert stored["modelWeights"]["goalModel"] == 0.35
    assert "lastUpdated" in stored


def test_weight_repository_defaults(file_adapter):
    weights = JSONWeightRepository(file_adapter).load()
    assert weights.as_dict() == {"elo": 0.30, "goalModel": 0.30, "odds": 0.40}


def test_empty_stores_load(file_adapter):
    assert JSONBiasRepository(file_adapter).load().leagues == {}
    assert JSONPerformanceLogRepository(file_adapter).load().entries == []


def test_changelog_appends(file_adapter):
    changelog = JSONChangeLogRepository(file_adapter)
    changelog.append("elo-update", {"changes": []}, season="2025-26", gameweek="GW1")
    changelog.append("weight-adjustment", {"reason": "x"}, season="2025-26")

    entries = changelog.entries()
    assert [e["type"] for e in entries] == ["elo-update", "weight-adjustment"]
    assert entries[0]["gameweek"] == "GW1"
    assert entries[1]["details"] == {"reason": "x"}


def test_malformed_result_entry_raises_invalid_data(gameweek_repo, write_gameweek):
    write_gameweek("GW4", results=[{"fixtureId": "abc", "homeGoals": 1}])

    with pytest.raises(InvalidMatchDataException):
        gameweek_repo.get_results("GW4")
