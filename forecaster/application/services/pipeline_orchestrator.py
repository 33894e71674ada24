"""
Gameweek state detection and step execution.

Each cycle: ingest, then evaluate finished gameweeks oldest first so rating
updates cascade, then re-scan and predict upcoming gameweeks.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ...config import PipelineConfig
from ...domains.data.entities import gameweek_number
from ...domains.data.repositories import GameweekRepository
from ...domains.shared.exceptions import DomainException, InfrastructureException
from ...infrastructure.adapters.file_adapter import JSONFileAdapter
from ...utils.datetime_helpers import hours_since, hours_until, utc_now
from .steps import StepContext, StepResult, StepSpec, StepStatus

logger = logging.getLogger(__name__)

STATUS_FILE = "pipeline-status.json"


@dataclass
class GameweekState:
    name: str
    match_count: int = 0
    has_predictions: bool = False
    has_results: bool = False
    finished_count: int = 0
    has_evaluation: bool = False
    first_kickoff: Optional[datetime] = None
    last_kickoff: Optional[datetime] = None

    @property
    def number(self) -> int:
        return gameweek_number(self.name)

    @property
    def has_matches(self) -> bool:
        return self.match_count > 0

    @property
    def coverage(self) -> float:
        return self.finished_count / self.match_count if self.match_count else 0.0

    @property
    def stage(self) -> str:
        if self.has_evaluation:
            return "has-evaluation"
        if self.has_results:
            complete = self.finished_count >= self.match_count
            return "has-results-complete" if complete else "has-results-partial"
        if self.has_predictions:
            return "has-predictions"
        if self.has_matches:
            return "has-matches"
        return "empty"


@dataclass
class Target:
    state: GameweekState
    reason: str
    emergency: bool = False


@dataclass
class ActionResult:
    action: str
    gameweek: Optional[str]
    status: StepStatus
    reason: str = ""
    duration: float = 0.0
    steps: List[dict] = field(default_factory=list)
    essential: bool = True

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "gameweek": self.gameweek,
            "status": self.status.value,
            "reason": self.reason,
            "duration": round(self.duration, 3),
            "steps": self.steps,
        }


@dataclass
class RunSummary:
    timestamp: str
    season: str
    dry_run: bool
    actions: List[ActionResult] = field(default_factory=list)

    @property
    def has_failure(self) -> bool:
        return any(a.essential and a.status is StepStatus.FAILED for a in self.actions)

    @property
    def exit_code(self) -> int:
        return 1 if self.has_failure else 0

    @property
    def summary(self) -> str:
        if not self.actions:
            return "Nothing to do, all gameweeks up to date."
        return "; ".join(
            f"{a.action} {a.gameweek or ''}: {a.status.value}"
            + (f" ({a.reason})" if a.reason else "")
            for a in self.actions
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "season": self.season,
            "dryRun": self.dry_run,
            "actions": [a.to_dict() for a in self.actions],
            "summary": self.summary,
        }


class PipelineOrchestrator:
    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        evaluation_steps: List[StepSpec],
        prediction_steps: List[StepSpec],
        ingest_step: Optional[StepSpec] = None,
        sync_step: Optional[StepSpec] = None,
        config: PipelineConfig = None,
        status_adapter: Optional[JSONFileAdapter] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gameweek_repository = gameweek_repository
        self.evaluation_steps = evaluation_steps
        self.prediction_steps = prediction_steps
        self.ingest_step = ingest_step
        self.sync_step = sync_step
        self.config = config or PipelineConfig()
        self.status_adapter = status_adapter
        self.clock = clock

    @property
    def season(self) -> str:
        return self.gameweek_repository.season

    # ------------------------------------------------------------------
    # State detection
    # ------------------------------------------------------------------

    def inspect(self, gameweek: str) -> GameweekState:
        repo = self.gameweek_repository
        state = GameweekState(
            name=gameweek,
            has_predictions=repo.has_predictions(gameweek),
            has_results=repo.has_results(gameweek),
            has_evaluation=repo.has_evaluation(gameweek),
        )

        try:
            matches = repo.get_matches(gameweek) if repo.has_matches(gameweek) else []
            results = repo.get_results(gameweek) if state.has_results else []
        except (DomainException, InfrastructureException) as e:
            logger.warning(f"{gameweek}: unreadable artifacts ({e}), treating as empty")
            return state

        kickoffs = sorted(m.kickoff for m in matches if m.kickoff is not None)
        state.match_count = len(matches)
        state.has_results = state.has_results and len(results) > 0
        state.finished_count = sum(1 for r in results if r.is_finished)
        state.first_kickoff = kickoffs[0] if kickoffs else None
        state.last_kickoff = kickoffs[-1] if kickoffs else None
        return state

    def scan(self) -> List[GameweekState]:
        states = [self.inspect(gw) for gw in self.gameweek_repository.list_gameweeks()]
        for state in states:
            logger.info(f"  {state.name}: {state.stage}")
        return states

    def find_evaluation_targets(self, states: List[GameweekState]) -> List[Target]:
        now = self.clock()
        targets = []
        for state in states:
            if not state.has_predictions or state.has_evaluation or state.last_kickoff is None:
                continue

            since = hours_since(state.last_kickoff, now)
            if since < self.config.evaluate_after_hours:
                if since < 0:
                    logger.info(f"{state.name}: last kickoff is {-since:.1f}h in the future, not ready to evaluate")
                else:
                    logger.info(f"{state.name}: last kickoff was {since:.1f}h ago, too soon to evaluate")
                continue

            if since > self.config.stale_after_days * 24:
                targets.append(Target(state, f"{since:.0f}h since last match (stale fallback)"))
            else:
                targets.append(Target(state, f"{since:.1f}h since last match"))

        return sorted(targets, key=lambda t: t.state.number)

    def find_prediction_targets(self, states: List[GameweekState]) -> List[Target]:
        now = self.clock()
        targets = []
        for state in states:
            if not state.has_matches or state.has_predictions or state.first_kickoff is None:
                continue

            until = hours_until(state.first_kickoff, now)
            if until < 0:
                logger.info(f"{state.name}: first kickoff already passed, skipping prediction")
                continue
            if until > self.config.predict_horizon_days * 24:
                logger.info(f"{state.name}: first kickoff in {until / 24:.1f}d, too early to predict")
                continue

            if until < self.config.emergency_hours:
                targets.append(Target(state, f"first kickoff in {until:.1f}h, emergency predict", emergency=True))
            else:
                targets.append(Target(state, f"first kickoff in {until / 24:.1f}d"))

        return sorted(targets, key=lambda t: t.state.number)

    def required_coverage(self, state: GameweekState) -> float:
        if state.last_kickoff is not None and hours_since(state.last_kickoff, self.clock()) > self.config.stale_after_days * 24:
            return self.config.stale_result_coverage
        return self.config.min_result_coverage

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run_step(self, spec: StepSpec, context: StepContext) -> StepResult:
        logger.info(f"  -> {spec.name}")
        try:
            result = spec.step.run(context)
        except Exception as e:
            logger.exception(f"{spec.name} raised for {context.gameweek or self.season}")
            return StepResult.failed(f"{type(e).__name__}: {e}")

        if result.status is StepStatus.FAILED:
            level = logging.ERROR if spec.essential else logging.WARNING
            logger.log(level, f"{spec.name} failed: {result.detail}")
        elif result.status is StepStatus.SKIPPED:
            logger.info(f"{spec.name} skipped: {result.detail}")
        return result

    def _run_specs(self, action: ActionResult, specs: List[StepSpec], context: StepContext) -> None:
        for spec in specs:
            started = time.monotonic()
            result = self._run_step(spec, context)
            action.steps.append(
                {
                    "name": spec.name,
                    "status": result.status.value,
                    "detail": result.detail,
                    "duration": round(time.monotonic() - started, 3),
                }
            )
            if result.status is StepStatus.FAILED and spec.essential:
                action.status = StepStatus.FAILED
                action.reason = f"{spec.name} failed: {result.detail}"
                return

    def _plan(self, action: str, gameweek: Optional[str], specs: List[StepSpec]) -> ActionResult:
        for spec in specs:
            logger.info(f"  [dry-run] would run {spec.name} for {gameweek or self.season}")
        return ActionResult(
            action, gameweek, StepStatus.SKIPPED, "dry run",
            steps=[{"name": s.name, "status": "planned"} for s in specs],
        )

    def ingest(self, dry_run: bool = False) -> Optional[ActionResult]:
        if self.ingest_step is None:
            return None
        logger.info("=== INGEST ===")
        if dry_run:
            return self._plan("ingest", None, [self.ingest_step])

        started = time.monotonic()
        action = ActionResult("ingest", None, StepStatus.SUCCESS, essential=self.ingest_step.essential)
        result = self._run_step(self.ingest_step, StepContext(self.season))
        action.steps.append({"name": self.ingest_step.name, "status": result.status.value, "detail": result.detail})
        action.status = result.status
        action.reason = result.detail
        if result.status is StepStatus.FAILED and not self.ingest_step.essential:
            logger.warning("Ingest failed, continuing with existing data")
        action.duration = time.monotonic() - started
        return action

    def evaluate(self, target: Target, dry_run: bool = False) -> ActionResult:
        name = target.state.name
        logger.info(f"=== EVALUATE {name} ===")
        specs = ([self.sync_step] if self.sync_step else []) + self.evaluation_steps
        if dry_run:
            return self._plan("evaluate", name, specs)

        started = time.monotonic()
        action = ActionResult("evaluate", name, StepStatus.SUCCESS)
        context = StepContext(self.season, name)

        if self.sync_step is not None:
            self._run_specs(action, [self.sync_step], context)

        state = self.inspect(name)
        required = self.required_coverage(state)
        logger.info(
            f"  Results: {state.finished_count}/{state.match_count} finished ({state.coverage:.0%})"
        )
        if state.coverage < required:
            action.status = StepStatus.SKIPPED
            action.reason = f"Only {state.coverage:.0%} results (need {required:.0%})"
            logger.info(f"  {action.reason}, skipping evaluation")
        else:
            self._run_specs(action, self.evaluation_steps, context)

        action.duration = time.monotonic() - started
        return action

    def predict(self, target: Target, dry_run: bool = False) -> ActionResult:
        name = target.state.name
        logger.info(f"=== PREDICT {name} ===")
        if dry_run:
            return self._plan("predict", name, self.prediction_steps)

        started = time.monotonic()
        action = ActionResult("predict", name, StepStatus.SUCCESS)
        self._run_specs(action, self.prediction_steps, StepContext(self.season, name))
        action.duration = time.monotonic() - started
        return action

    def run(self, dry_run: bool = False) -> RunSummary:
        logger.info(f"Pipeline started (season {self.season}, dry run: {dry_run})")
        summary = RunSummary(self.clock().isoformat(), self.season, dry_run)

        ingested = self.ingest(dry_run)
        if ingested is not None:
            summary.actions.append(ingested)

        evaluation_targets = self.find_evaluation_targets(self.scan())
        if not evaluation_targets:
            logger.info("No gameweeks need evaluation.")
        for target in evaluation_targets:
            logger.info(f"  {target.state.name}: {target.reason}")
            summary.actions.append(self.evaluate(target, dry_run))

        prediction_targets = self.find_prediction_targets(self.scan())
        if not prediction_targets:
            logger.info("No gameweeks need prediction.")
        for target in prediction_targets:
            if target.emergency:
                logger.warning(f"{target.state.name}: {target.reason}")
            else:
                logger.info(f"  {target.state.name}: {target.reason}")
            summary.actions.append(self.predict(target, dry_run))

        logger.info(f"=== SUMMARY === {summary.summary}")
        if not dry_run and self.status_adapter is not None:
            self.status_adapter.write_json(summary.to_dict(), STATUS_FILE)
        return summary
