import json

from forecaster.main import build_parser, main

from .factories import SEASON


def cli(tmp_path, *args):
    return main(["--data-dir", str(tmp_path), "--season", SEASON, *args])


def test_common_options_before_or_after_command():
    parser = build_parser()

    before = parser.parse_args(["--season", "2024-25", "predict", "--gameweek", "GW3"])
    after = parser.parse_args(["predict", "--gameweek", "GW3", "--season", "2024-25", "--force"])

    assert before.season == after.season == "2024-25"
    assert before.gameweek == "GW3"
    assert not before.force and after.force


def test_default_command_is_run():
    args = build_parser().parse_args([])
    assert args.command is None
    assert args.season is None


def test_seed_and_list_ratings(tmp_path, capsys):
    standings = tmp_path / "standings.json"
    standings.write_text(
        json.dumps(
            {
                "data": [
                    {"participant_id": 1, "position": 1, "participant": {"name": "Arsenal"}, "league_id": 8},
                    {"participant_id": 2, "position": 2, "participant": {"name": "Chelsea"}, "league_id": 8},
                    {"participant_id": 3, "position": 3, "participant": {"name": "Fulham"}, "league_id": 8},
                ]
            }
        )
    )

    assert cli(tmp_path, "ratings", "init", "--standings", str(standings)) == 0
    assert cli(tmp_path, "ratings", "list") == 0

    lines = capsys.readouterr().out.splitlines()
    ranked = [line for line in lines if line.strip()[:2] in ("1.", "2.", "3.")]
    assert "Arsenal" in ranked[0] and "1700.0" in ranked[0]
    assert "Fulham" in ranked[2] and "1300.0" in ranked[2]


def test_list_without_ratings(tmp_path, capsys):
    assert cli(tmp_path, "ratings", "list") == 0
    assert "No ratings stored yet" in capsys.readouterr().out


def test_missing_artifact_exits_non_zero(tmp_path):
    assert cli(tmp_path, "evaluate", "--gameweek", "GW9") == 1


def test_skipped_step_exits_zero(tmp_path):
    assert cli(tmp_path, "adjust-weights") == 0


def test_dry_run_on_empty_data_dir(tmp_path):
    assert cli(tmp_path, "run", "--dry-run") == 0
    assert [p for p in tmp_path.rglob("*") if p.is_file()] == []
