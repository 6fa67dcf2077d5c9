# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Request and response shapes for the scoring server.

Plain dataclasses rather than pydantic: these are runtime data, not config.
"""

from dataclasses import asdict, dataclass

from ravensaid.scoring.fixed_point import score_status, score_to_percent


@dataclass(frozen=True)
class ScoreRequest:
    message: str


@dataclass(frozen=True)
class ScoreResponse:
    """
    `score` is the raw fixed-point value or sentinel; `percent` is the same
    score as a float, or None when `status` isn't "ok".
    """

    score: int
    percent: float | None
    status: str
    elapsed_ms: float

    @classmethod
    def from_score(cls, score: int, elapsed_ms: float) -> "ScoreResponse":
        return cls(
            score=score,
            percent=score_to_percent(score),
            status=score_status(score),
            elapsed_ms=round(elapsed_ms, 3),
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class ServerStatus:
    model_loaded: bool = False
    model_path: str = ""
    device: str = "cpu"
    input_bytes: int = 32
    max_message_bytes: int = 2000
