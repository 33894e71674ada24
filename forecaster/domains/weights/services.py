"""
Accuracy-driven adjustment of the ensemble blend weights.

Each cycle nudges every signal's weight towards (or away from) the ensemble
by at most ``max_weight_delta``, so one lucky gameweek cannot swing the blend.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ...config import ModelConfig
from ...utils.datetime_helpers import isoformat_now
from ..evaluation.entities import EvaluationRecord
from ..shared.exceptions import InsufficientDataException
from .entities import COMPONENTS, EnsembleWeights, WeightAdjustment

logger = logging.getLogger(__name__)

COMPONENT_LABELS = {"elo": "Elo", "goalModel": "Goal model", "odds": "Odds"}


def project_to_bounds(
    weights: Dict[str, float], low: float, high: float
) -> Dict[str, float]:
    """Scale weights to sum to 1 while keeping each one inside [low, high]."""
    values = {k: min(max(v, low), high) for k, v in weights.items()}
    pinned: Dict[str, float] = {}

    for _ in range(len(values)):
        free = [k for k in values if k not in pinned]
        if not free:
            break
        budget = 1.0 - sum(pinned.values())
        free_total = sum(values[k] for k in free)
        scaled = {
            k: values[k] * budget / free_total if free_total > 0 else budget / len(free)
            for k in free
        }
        violators = {k: v for k, v in scaled.items() if v < low or v > high}
        if not violators:
            return {**pinned, **scaled}
        for k, v in violators.items():
            pinned[k] = min(max(v, low), high)

    return {**pinned, **{k: values[k] for k in values if k not in pinned}}


def round_to_unit_sum(
    weights: Dict[str, float], low: float, high: float, digits: int = 3
) -> Dict[str, float]:
    """Round all but the last weight; the last is the remainder so the sum is exact."""
    keys = list(weights)
    rounded = {k: round(weights[k], digits) for k in keys[:-1]}
    last = round(1.0 - sum(rounded.values()), digits)

    # Rounding can push the remainder a hair past a bound.
    if last > high or last < low:
        target = min(max(last, low), high)
        spill = round(last - target, digits)
        for k in keys[:-1]:
            candidate = round(rounded[k] + spill, digits)
            if low <= candidate <= high:
                rounded[k] = candidate
                last = target
                break

    rounded[keys[-1]] = last
    return rounded


class AdaptiveWeightCalibrator:
    def __init__(self, config: ModelConfig = None):
        self.config = config or ModelConfig()

    def window_accuracies(
        self, evaluations: List[EvaluationRecord]
    ) -> Tuple[float, Dict[str, Optional[float]]]:
        """Match-weighted mean accuracy of the ensemble and of each component."""
        overall_sum = overall_n = 0.0
        sums = {c: 0.0 for c in COMPONENTS}
        counts = {c: 0 for c in COMPONENTS}

        for evaluation in evaluations:
            n = evaluation.summary.matched_with_results
            overall_sum += evaluation.summary.outcome_accuracy * n
            overall_n += n
            for component in COMPONENTS:
                accuracy = evaluation.component_accuracy.get(component)
                if accuracy is None:
                    continue
                count = evaluation.matches_for(component)
                sums[component] += accuracy * count
                counts[component] += count

        overall = overall_sum / overall_n if overall_n > 0 else 0.0
        components = {
            c: sums[c] / counts[c] if counts[c] > 0 else None for c in COMPONENTS
        }
        return overall, components

    def delta_for(self, accuracy: Optional[float], overall: float) -> float:
        if accuracy is None:
            return 0.0
        limit = self.config.max_weight_delta
        delta = (accuracy - overall) * self.config.delta_multiplier
        return max(-limit, min(limit, delta))

    def adjust(
        self, weights: EnsembleWeights, evaluations: List[EvaluationRecord], window: int = None
    ) -> Tuple[EnsembleWeights, WeightAdjustment]:
        window = window or self.config.weight_window
        recent = evaluations[-window:]
        if len(recent) < self.config.min_evaluated_periods:
            raise InsufficientDataException(
                f"Need at least {self.config.min_evaluated_periods} evaluated gameweeks "
                f"in a window of {window} to adjust weights. Found: {len(recent)}"
            )

        overall, components = self.window_accuracies(recent)
        logger.info(
            f"Using {len(recent)} gameweeks for weight adjustment: "
            f"{', '.join(e.gameweek for e in recent)}"
        )

        old = weights.as_dict()
        reasons = []
        moved = {}
        for component in COMPONENTS:
            delta = self.delta_for(components[component], overall)
            moved[component] = old[component] + delta
            if abs(delta) > 0.001:
                direction = "above" if delta > 0 else "below"
                reasons.append(
                    f"{COMPONENT_LABELS[component]} accuracy {components[component]:.1%} "
                    f"is {direction} average ({overall:.1%}), adjusting by {delta * 100:.2f}%"
                )

        low, high = self.config.weight_bounds
        new = round_to_unit_sum(project_to_bounds(moved, low, high), low, high)

        now = isoformat_now()
        adjustment = WeightAdjustment(
            timestamp=now,
            gameweeks_used=[e.gameweek for e in recent],
            old_weights=old,
            new_weights=new,
            component_accuracies=components,
            reason="; ".join(reasons) if reasons else "No significant accuracy differences detected",
        )

        for component in COMPONENTS:
            logger.info(
                f"{COMPONENT_LABELS[component]}: {old[component]:.1%} -> {new[component]:.1%}"
            )

        updated = EnsembleWeights(
            elo=new["elo"],
            goal_model=new["goalModel"],
            odds=new["odds"],
            last_adjusted=now,
            adjustment_history=weights.adjustment_history + [adjustment.to_dict()],
        )
        return updated, adjustment
