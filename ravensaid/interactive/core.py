# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Interactive scoring loop.

Reads one message per line and answers with the likelihood that
Ravenholdt wrote it. Typing `exit` or closing the input ends the session.
"""

import logging
from typing import TextIO

from ravensaid.logging.logger import get_logger
from ravensaid.scoring.fixed_point import format_score, is_error
from ravensaid.scoring.handle import RavensaidState, ravensaid

logger: logging.Logger = get_logger(__name__)

EXIT_COMMAND = "exit"
PROMPT = "Enter messages to estimate the likelihood that Ravenholdt said them:\n"


def run_interactive(state: RavensaidState, input_stream: TextIO, output_stream: TextIO) -> int:
    """
    Score lines from `input_stream` until `exit` or end of input.

    Returns:
        How many lines were scored successfully.
    """
    output_stream.write(PROMPT)
    output_stream.flush()

    scored = 0
    for raw_line in input_stream:
        line = raw_line.removesuffix("\n").removesuffix("\r")
        if line == EXIT_COMMAND:
            break

        score = ravensaid(state, line)
        if is_error(score):
            output_stream.write(f"Could not score that message ({format_score(score)})\n")
        else:
            output_stream.write(f"Likelihood that Ravenholdt said ^: {format_score(score)}\n")
            scored += 1
        output_stream.flush()

    logger.info("Interactive session ended", extra={"scored": scored})
    return scored
