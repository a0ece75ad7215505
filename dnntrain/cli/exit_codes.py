# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI exit codes.

VALIDATION_ERROR covers inputs that load fine but can't be trained on: an
empty train/validation split, an unparsable dataset, a model whose input
width doesn't match the data.
"""

SUCCESS: int = 0
USER_ERROR: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
VALIDATION_ERROR: int = 4
