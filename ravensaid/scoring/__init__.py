# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Public scoring API.

  ravensaid_init(path)       -> RavensaidState | None
  ravensaid(state, message)  -> fixed-point percentage or negative sentinel
  ravensaid_free(state)      -> None
"""

from ravensaid.scoring.fixed_point import (
    ABOVE_RANGE,
    BELOW_RANGE,
    INVALID_MESSAGE,
    MAX_SCORE,
    MIN_SCORE,
)
from ravensaid.scoring.handle import (
    HandleMisuseError,
    RavensaidState,
    ravensaid,
    ravensaid_free,
    ravensaid_init,
)

__all__ = [
    "ABOVE_RANGE",
    "BELOW_RANGE",
    "INVALID_MESSAGE",
    "MAX_SCORE",
    "MIN_SCORE",
    "HandleMisuseError",
    "RavensaidState",
    "ravensaid",
    "ravensaid_free",
    "ravensaid_init",
]
