# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Ravensaid training infrastructure package.

Subsystems:
  - corpus: passage loading, interleaving, train/validation split
  - optimizer: Adam factory and the two-step learning rate schedule
  - checkpoint: atomic .nn save/load with checksummed sidecars
  - metrics: validation accuracy and per-epoch reporting
  - engine: the training loop and experiment directories
"""
