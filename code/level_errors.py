"""Exception types raised by the level generator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from level_layout import LevelLayout


class LevelGenerationError(Exception):
    """Base class for all level generation failures."""


class InvalidConfig(LevelGenerationError, ValueError):
    """The generator configuration is malformed; no attempt is made."""


class InvalidDimension(InvalidConfig):
    """Grid width or height lies outside the supported range."""


class InvalidTemplate(ValueError):
    """A room template failed catalog load-time validation."""


class GenerationCancelled(LevelGenerationError):
    """The caller aborted generation between placement steps."""


class AttemptInvalid(LevelGenerationError):
    """One attempt finished but its layout failed validation."""

    def __init__(self, layout: "LevelLayout") -> None:
        self.layout = layout
        report = layout.report
        problems = report.describe_problems() if report is not None else "unknown"
        super().__init__(f"Attempt {layout.attempt} produced an invalid layout: {problems}")


class RetryBudgetExceeded(LevelGenerationError):
    """Forced generation did not converge within the attempt cap."""

    def __init__(
        self,
        attempts: int,
        missing_essentials: Sequence[str],
        dangling_exits: int,
        last_layout: "LevelLayout | None" = None,
    ) -> None:
        self.attempts = attempts
        self.missing_essentials = tuple(missing_essentials)
        self.dangling_exits = dangling_exits
        self.last_layout = last_layout
        missing = ", ".join(self.missing_essentials) if self.missing_essentials else "none"
        room_count = last_layout.room_count if last_layout is not None else 0
        super().__init__(
            f"Forced generation failed after {attempts} attempts "
            f"(missing essential templates: {missing}; dangling exits: {dangling_exits}; "
            f"rooms in last attempt: {room_count}). "
            "Check the template set and the minimum/maximum level size."
        )
