# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Ravensaid model package.

A two-layer linear network over a one-hot encoding of the first bytes of a
message, producing a single logit for "written by Ravenholdt".
"""
