"""Helpers for collecting instrumentation data during level generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class PhaseMetrics:
    """Aggregated metrics for a single placement phase across invocations."""

    name: str
    invocations: int = 0
    total_time: float = 0.0
    total_rooms_added: int = 0

    def record(self, duration: float, rooms_delta: int) -> None:
        self.invocations += 1
        self.total_time += duration
        self.total_rooms_added += rooms_delta

    def to_dict(self) -> Dict[str, float | int]:
        average_time = self.total_time / self.invocations if self.invocations else 0.0
        average_rooms = (
            self.total_rooms_added / self.invocations if self.invocations else 0.0
        )
        return {
            "invocations": self.invocations,
            "total_time": self.total_time,
            "average_time": average_time,
            "total_rooms_added": self.total_rooms_added,
            "average_rooms_added": average_rooms,
        }


@dataclass
class GenerationMetrics:
    """Container for phase and attempt metrics recorded during a generation run."""

    phases: Dict[str, PhaseMetrics] = field(default_factory=dict)
    attempts: int = 0
    invalid_attempts: int = 0

    def record_phase_run(self, name: str, duration: float, rooms_delta: int) -> None:
        metrics = self.phases.get(name)
        if metrics is None:
            metrics = PhaseMetrics(name=name)
            self.phases[name] = metrics
        metrics.record(duration, rooms_delta)

    def record_attempt(self, valid: bool) -> None:
        self.attempts += 1
        if not valid:
            self.invalid_attempts += 1

    def snapshot(self) -> Dict[str, object]:
        return {
            "attempts": self.attempts,
            "invalid_attempts": self.invalid_attempts,
            "phases": {name: metrics.to_dict() for name, metrics in self.phases.items()},
        }
