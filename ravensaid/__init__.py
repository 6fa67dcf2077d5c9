# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Ravensaid: how likely is it that Ravenholdt said this?

The scoring API lives in ravensaid.scoring; training in ravensaid.training.
"""

__version__ = "0.1.0"
