# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fixed-point score encoding.

A score is a percentage with two implied decimals held in an int:
4625 means 46.25%. Valid scores lie in [0, 20000] (0% to 200%).
Negative values are sentinels, never percentages:

  -1  the message was rejected before scoring
  -2  the computed probability was above 200% (or not a number)
  -3  the computed probability was negative

Probabilities between 100% and 200% are passed through as-is.
"""

import math

INVALID_MESSAGE = -1
ABOVE_RANGE = -2
BELOW_RANGE = -3

MIN_SCORE = 0
MAX_SCORE = 20_000
SCALE = 100 * 100
MAX_PROBABILITY = 2.0

_STATUS_NAMES = {
    INVALID_MESSAGE: "invalid_message",
    ABOVE_RANGE: "above_range",
    BELOW_RANGE: "below_range",
}


def probability_to_score(probability: float) -> int:
    """
    Convert a probability (1.0 == 100%) into a fixed-point score.

    Truncates toward zero, so 0.46259 becomes 4625.
    """
    if math.isnan(probability) or probability > MAX_PROBABILITY:
        return ABOVE_RANGE
    if probability < 0.0:
        return BELOW_RANGE
    return int(probability * SCALE)


def is_error(score: int) -> bool:
    return score < 0


def score_status(score: int) -> str:
    """'ok' for valid scores, otherwise the sentinel's name."""
    if score >= 0:
        return "ok"
    return _STATUS_NAMES.get(score, "unknown_error")


def score_to_percent(score: int) -> float | None:
    """46.25 for 4625; None for sentinels."""
    if score < 0:
        return None
    return score / 100


def format_score(score: int, decimal_separator: str = ".") -> str:
    """Render a valid score as e.g. '46.25%'. Sentinels render as their status name."""
    if score < 0:
        return score_status(score)
    return f"{score // 100}{decimal_separator}{score % 100:02d}%"
