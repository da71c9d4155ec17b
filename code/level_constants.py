"""Shared constants for the level generator."""

from __future__ import annotations

MIN_GRID_SIZE = 1
MAX_GRID_SIZE = 500  # Upper bound on either grid dimension, matching the configuration surface.

MIN_LEVEL_DENSITY = 0
MAX_LEVEL_DENSITY = 100

DEFAULT_MAX_GENERATION_ATTEMPTS = 100  # Forced generation gives up after this many invalid attempts.

SEED_UPPER_BOUND = 2**32  # Attempt seeds are drawn from [0, SEED_UPPER_BOUND).

CORRIDOR_EXIT_COUNT = 2
