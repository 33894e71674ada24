import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .application.services.pipeline_orchestrator import PipelineOrchestrator
from .application.services.steps import CommandStep, StepResult, StepSpec, StepStatus
from .application.use_cases.adjust_weights import AdjustWeightsUseCase
from .application.use_cases.calibrate_bias import CalibrateBiasUseCase
from .application.use_cases.evaluate_gameweek import EvaluateGameweekUseCase
from .application.use_cases.generate_predictions import GeneratePredictionsUseCase
from .application.use_cases.ingest_fixtures import IngestFixturesUseCase
from .application.use_cases.sync_results import SyncResultsUseCase
from .application.use_cases.update_performance_log import UpdatePerformanceLogUseCase
from .application.use_cases.update_ratings import SeedRatingsUseCase, UpdateRatingsUseCase
from .config import AppConfig
from .domains.evaluation.services import EvaluationEngine, PerformanceTracker
from .domains.goals.calibration import BiasCalibrator
from .domains.goals.services import GoalModel
from .domains.predictions.services import EnsembleBlender, PredictionService
from .domains.ratings.services import EloEngine, RatingService
from .domains.shared.exceptions import DomainException, InfrastructureException
from .domains.weights.services import AdaptiveWeightCalibrator
from .infrastructure.adapters.file_adapter import JSONFileAdapter
from .infrastructure.data_sources.sportmonks_client import SportmonksClient
from .infrastructure.repositories.json_gameweek_repository import JSONGameweekRepository
from .infrastructure.repositories.json_memory_repositories import (
    JSONBiasRepository,
    JSONChangeLogRepository,
    JSONPerformanceLogRepository,
    JSONRatingRepository,
    JSONWeightRepository,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Application:
    config: AppConfig
    file_adapter: JSONFileAdapter
    gameweeks: JSONGameweekRepository
    ratings: JSONRatingRepository
    ingest: IngestFixturesUseCase
    sync_results: SyncResultsUseCase
    predict: GeneratePredictionsUseCase
    evaluate: EvaluateGameweekUseCase
    update_ratings: UpdateRatingsUseCase
    adjust_weights: AdjustWeightsUseCase
    calibrate_bias: CalibrateBiasUseCase
    update_performance_log: UpdatePerformanceLogUseCase
    seed_ratings: SeedRatingsUseCase
    orchestrator: PipelineOrchestrator


def create_application(config: AppConfig) -> Application:
    """Factory function to create the application with all dependencies"""

    # Infrastructure layer
    file_adapter = JSONFileAdapter(str(config.data_dir))
    gameweek_repository = JSONGameweekRepository(file_adapter, config.current_season)
    rating_repository = JSONRatingRepository(file_adapter)
    weight_repository = JSONWeightRepository(file_adapter)
    bias_repository = JSONBiasRepository(file_adapter)
    performance_repository = JSONPerformanceLogRepository(file_adapter)
    changelog = JSONChangeLogRepository(file_adapter)

    client = SportmonksClient(
        config.sportmonks_base_url,
        config.sportmonks_api_token,
        delay=config.request_delay,
        timeout=config.request_timeout,
    )

    # Domain services
    rating_service = RatingService(EloEngine(config.model))
    goal_model = GoalModel(config.model)
    prediction_service = PredictionService(
        rating_service, goal_model, EnsembleBlender(config.model)
    )

    # Use cases
    ingest = IngestFixturesUseCase(gameweek_repository, client, config.league_ids)
    sync_results = SyncResultsUseCase(gameweek_repository, client)
    predict = GeneratePredictionsUseCase(
        gameweek_repository,
        rating_repository,
        weight_repository,
        bias_repository,
        prediction_service,
    )
    evaluate = EvaluateGameweekUseCase(gameweek_repository, EvaluationEngine(config.model))
    update_ratings = UpdateRatingsUseCase(
        gameweek_repository, rating_repository, rating_service, changelog
    )
    adjust_weights = AdjustWeightsUseCase(
        gameweek_repository,
        weight_repository,
        AdaptiveWeightCalibrator(config.model),
        changelog,
        window=config.model.weight_window,
    )
    calibrate_bias = CalibrateBiasUseCase(
        gameweek_repository, bias_repository, BiasCalibrator(goal_model), changelog
    )
    update_performance_log = UpdatePerformanceLogUseCase(
        gameweek_repository, performance_repository, PerformanceTracker()
    )

    # Operator commands replace the built-in HTTP steps when configured
    timeout = config.pipeline.step_timeout
    ingest_step = (
        CommandStep(config.ingest_command, timeout) if config.ingest_command else ingest
    )
    sync_step = (
        CommandStep(config.sync_results_command, timeout)
        if config.sync_results_command
        else sync_results
    )

    orchestrator = PipelineOrchestrator(
        gameweek_repository,
        evaluation_steps=[
            StepSpec("evaluate", evaluate, essential=True),
            StepSpec("update-ratings", update_ratings),
            StepSpec("adjust-weights", adjust_weights),
            StepSpec("calibrate-bias", calibrate_bias),
            StepSpec("update-performance-log", update_performance_log),
        ],
        prediction_steps=[StepSpec("generate-predictions", predict, essential=True)],
        ingest_step=StepSpec("ingest", ingest_step),
        sync_step=StepSpec("sync-results", sync_step),
        config=config.pipeline,
        status_adapter=file_adapter,
    )

    return Application(
        config=config,
        file_adapter=file_adapter,
        gameweeks=gameweek_repository,
        ratings=rating_repository,
        ingest=ingest,
        sync_results=sync_results,
        predict=predict,
        evaluate=evaluate,
        update_ratings=update_ratings,
        adjust_weights=adjust_weights,
        calibrate_bias=calibrate_bias,
        update_performance_log=update_performance_log,
        seed_ratings=SeedRatingsUseCase(rating_repository),
        orchestrator=orchestrator,
    )


def _add_common(parser: argparse.ArgumentParser, default=None) -> None:
    parser.add_argument(
        "--season", default=default, help="Season folder, e.g. 2025-26 (default: $SEASON)"
    )
    parser.add_argument(
        "--data-dir", default=default, help="Data root (default: $DATA_DIR or ./data)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=default or False, help="Debug logging"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forecaster",
        description="Self-calibrating football match forecasting pipeline",
    )
    _add_common(parser)

    # Options repeated after the subcommand must not reset the top-level values
    common = argparse.ArgumentParser(add_help=False)
    _add_common(common, default=argparse.SUPPRESS)

    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", parents=[common], help="Run one orchestrator cycle")
    run.add_argument("--dry-run", action="store_true", help="Log planned steps only")

    for name, help_text in (
        ("predict", "Generate predictions for a gameweek"),
        ("evaluate", "Score a gameweek's predictions against results"),
        ("update-ratings", "Apply a gameweek's results to the Elo store"),
    ):
        cmd = sub.add_parser(name, parents=[common], help=help_text)
        cmd.add_argument("--gameweek", required=True, help="e.g. GW12")
        cmd.add_argument("--force", action="store_true", help="Redo even if already done")

    adjust = sub.add_parser("adjust-weights", parents=[common], help="Rebalance blend weights")
    adjust.add_argument("--window", type=int, help="Number of recent evaluations to use")

    sub.add_parser("calibrate-bias", parents=[common], help="Recompute per-league goal bias")

    perf = sub.add_parser(
        "update-performance-log", parents=[common], help="Append an evaluation to the log"
    )
    perf.add_argument("--gameweek", required=True)

    sub.add_parser("ingest", parents=[common], help="Fetch the current round's fixtures")

    sync = sub.add_parser("sync-results", parents=[common], help="Fetch final scores")
    sync.add_argument("--gameweek", help="Defaults to the latest gameweek")

    ratings = sub.add_parser("ratings", parents=[common], help="Inspect or seed Elo ratings")
    ratings_sub = ratings.add_subparsers(dest="ratings_command", required=True)
    ratings_sub.add_parser("list", help="Print ratings, strongest first")
    init = ratings_sub.add_parser("init", help="Seed ratings from a standings JSON file")
    init.add_argument("--standings", required=True, type=Path)

    return parser


def _report(result: StepResult) -> int:
    level = logging.ERROR if result.status is StepStatus.FAILED else logging.INFO
    logger.log(level, f"{result.status.value}: {result.detail}")
    return 0 if result.ok else 1


def _list_ratings(app: Application) -> int:
    book = app.ratings.load()
    if not book.ratings:
        print("No ratings stored yet. Seed with: forecaster ratings init --standings FILE")
        return 0

    for rank, rating in enumerate(book.ranked(), start=1):
        print(f"{rank:>3}. {rating.team:<30} {rating.rating:>7.1f}  {rating.league}")
    print(f"\n{len(book.ratings)} teams, last updated {book.last_updated}")
    return 0


def _init_ratings(app: Application, path: Path) -> int:
    with open(path) as f:
        data = json.load(f)
    standings = data.get("data", data) if isinstance(data, dict) else data
    seeded = app.seed_ratings.execute(standings)
    print(f"Seeded {seeded} teams from {path}")
    return 0


def dispatch(app: Application, args: argparse.Namespace) -> int:
    command = args.command or "run"

    if command == "run":
        summary = app.orchestrator.run(dry_run=getattr(args, "dry_run", False))
        return summary.exit_code
    if command == "predict":
        return _report(app.predict.execute(args.gameweek, args.force))
    if command == "evaluate":
        return _report(app.evaluate.execute(args.gameweek, args.force))
    if command == "update-ratings":
        return _report(app.update_ratings.execute(args.gameweek, args.force))
    if command == "adjust-weights":
        return _report(app.adjust_weights.execute(args.window))
    if command == "calibrate-bias":
        return _report(app.calibrate_bias.execute())
    if command == "update-performance-log":
        return _report(app.update_performance_log.execute(args.gameweek))
    if command == "ingest":
        return _report(app.ingest.execute())
    if command == "sync-results":
        return _report(app.sync_results.execute(args.gameweek))
    if command == "ratings":
        if args.ratings_command == "list":
            return _list_ratings(app)
        return _init_ratings(app, args.standings)

    logger.error(f"Unknown command: {command}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT
    )

    config = AppConfig(season=args.season, data_dir=args.data_dir)
    app = create_application(config)

    try:
        return dispatch(app, args)
    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user")
        return 1
    except DomainException as e:
        logger.error(f"Domain error: {e}")
        return 1
    except InfrastructureException as e:
        logger.error(f"Infrastructure error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
