import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    return value if value not in (None, "") else default


@dataclass
class ModelConfig:
    """Tunable constants for the rating, goal and ensemble models."""

    # Elo
    default_rating: float = 1500.0
    k_factor: float = 20.0
    home_advantage: float = 65.0
    draw_base: float = 0.30
    draw_decay: float = 0.0003
    draw_floor: float = 0.08

    # Goal model
    max_goals: int = 5
    default_avg_home_goals: float = 1.4
    default_avg_away_goals: float = 1.1
    elo_xg_factor: float = 0.15
    odds_xg_weight: float = 0.2
    home_xg_bounds: Tuple[float, float] = (0.4, 3.5)
    away_xg_bounds: Tuple[float, float] = (0.3, 3.0)
    bias_correction_weight: float = 0.5
    min_bias_matches: int = 10

    # Ensemble
    probability_floor: float = 0.03
    confidence_cap: float = 0.95
    default_weights: Tuple[float, float, float] = (0.30, 0.30, 0.40)

    # Adaptive weights
    weight_bounds: Tuple[float, float] = (0.05, 0.70)
    max_weight_delta: float = 0.02
    delta_multiplier: float = 0.5
    weight_window: int = 5
    min_evaluated_periods: int = 2

    # Evaluation
    log_loss_bounds: Tuple[float, float] = (0.001, 0.999)


@dataclass
class PipelineConfig:
    """Scheduling thresholds for the orchestrator."""

    evaluate_after_hours: float = 3.0
    min_result_coverage: float = 0.8
    stale_result_coverage: float = 0.5
    stale_after_days: float = 7.0
    predict_horizon_days: float = 7.0
    emergency_hours: float = 12.0
    step_timeout: float = 300.0


class AppConfig:
    def __init__(self, season: str | None = None, data_dir: str | None = None):
        self.current_season: str = season or _env("SEASON", "2025-26")
        self.data_dir: Path = Path(data_dir or _env("DATA_DIR", "data"))

        self.sportmonks_base_url: str = _env(
            "SPORTMONKS_BASE_URL", "https://api.sportmonks.com/v3/football"
        )
        self.sportmonks_api_token: Optional[str] = _env("SPORTMONKS_API_TOKEN")
        self.league_ids: List[int] = [
            int(x) for x in _env("SPORTMONKS_LEAGUES", "").split(",") if x.strip()
        ]
        self.request_delay: float = float(_env("REQUEST_DELAY", "0.2"))
        self.request_timeout: float = float(_env("REQUEST_TIMEOUT", "30"))

        # Optional shell commands that replace the built-in HTTP steps
        self.ingest_command: Optional[str] = _env("INGEST_COMMAND")
        self.sync_results_command: Optional[str] = _env("SYNC_RESULTS_COMMAND")

        self.model = ModelConfig()
        self.pipeline = PipelineConfig(
            step_timeout=float(_env("STEP_TIMEOUT", "300"))
        )
