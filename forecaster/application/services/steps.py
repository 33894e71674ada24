"""
Step interface shared by every pipeline stage.

A step is anything with ``run(context) -> StepResult``. Use cases implement it
directly; ``CommandStep`` wraps an operator-supplied shell command.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    detail: str = ""

    @classmethod
    def success(cls, detail: str = "") -> "StepResult":
        return cls(StepStatus.SUCCESS, detail)

    @classmethod
    def skipped(cls, reason: str) -> "StepResult":
        return cls(StepStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, reason: str) -> "StepResult":
        return cls(StepStatus.FAILED, reason)

    @property
    def ok(self) -> bool:
        return self.status is not StepStatus.FAILED


@dataclass(frozen=True)
class StepContext:
    season: str
    gameweek: Optional[str] = None
    force: bool = False


class Step(ABC):
    @abstractmethod
    def run(self, context: StepContext) -> StepResult:
        pass


@dataclass(frozen=True)
class StepSpec:
    """One entry of a declarative pipeline; non-essential failures do not stop the period."""

    name: str
    step: Step
    essential: bool = False


class CommandStep(Step):
    """Runs a shell command with ``{season}`` and ``{gameweek}`` substituted."""

    def __init__(self, command: str, timeout: float = 300, cwd: Optional[str] = None):
        self.command = command
        self.timeout = timeout
        self.cwd = cwd

    def run(self, context: StepContext) -> StepResult:
        # Only the two placeholders are replaced; other braces reach the shell as-is
        command = self.command.replace("{season}", context.season).replace(
            "{gameweek}", context.gameweek or ""
        )
        env = {**os.environ, "SEASON": context.season}
        if context.gameweek:
            env["GAMEWEEK"] = context.gameweek

        logger.info(f"Running: {command}")
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=self.cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return StepResult.failed(f"Timed out after {self.timeout:.0f}s: {command}")

        if completed.stdout:
            logger.debug(completed.stdout.rstrip())
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            return StepResult.failed(
                f"Exit code {completed.returncode}: {stderr or command}"
            )
        return StepResult.success(command)
