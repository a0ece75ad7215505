# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training precondition errors.

These are raised before the first epoch starts. Once the loop is running,
every way out (converged, max epoch reached) is a normal return value.
"""


class TrainingError(Exception):
    """Base for all training setup errors."""


class InvalidTrainingConfigError(TrainingError):
    """Raised when a schedule parameter (max_epoch, batch_size, window, ...) is below 1."""


class EmptyDatasetError(TrainingError):
    """Raised when the training or validation set has no samples; accuracy would be undefined."""
