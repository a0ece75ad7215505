# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deterministic mini-batch partitioning.

A dataset of N samples is cut into ceil(N / B) contiguous, half-open ranges:
  [0, B), [B, 2B), ..., [kB, N)
All ranges have length B except possibly the last one.

The scheduler holds only (N, B, shuffle, seed), so it can be iterated again
every epoch at no cost. Ranges are computed lazily on iteration.

With shuffle enabled only the *order* of ranges changes, permuted by a
torch.Generator seeded with (seed + epoch). Every range stays contiguous and
the coverage of [0, N) is unchanged. The default keeps the natural order.
"""

from dataclasses import dataclass
from typing import Iterator

import torch


@dataclass(frozen=True)
class BatchRange:
    """Half-open index interval [start, end) into a dataset."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid batch range [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def as_slice(self) -> slice:
        return slice(self.start, self.end)


class BatchScheduler:
    """
    Restartable sequence of BatchRanges over [0, dataset_size).

    Args:
        dataset_size: Number of samples N (>= 0).
        batch_size: Samples per batch B (>= 1).
        shuffle: Permute batch order per epoch.
        seed: Base seed for the per-epoch permutation.
    """

    def __init__(
        self,
        dataset_size: int,
        batch_size: int,
        shuffle: bool = False,
        seed: int = 42,
    ) -> None:
        if dataset_size < 0:
            raise ValueError(f"dataset_size must be >= 0, got {dataset_size}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.dataset_size = dataset_size
        self.batch_size = batch_size
        self.shuffle = shuffle
        self.seed = seed

    def __len__(self) -> int:
        return -(-self.dataset_size // self.batch_size)

    def __iter__(self) -> Iterator[BatchRange]:
        for index in range(len(self)):
            yield self._range_at(index)

    def _range_at(self, index: int) -> BatchRange:
        start = index * self.batch_size
        return BatchRange(start, min(start + self.batch_size, self.dataset_size))

    def for_epoch(self, epoch: int) -> Iterator[BatchRange]:
        """Ranges for one epoch, in natural order unless shuffling is on."""
        if not self.shuffle:
            yield from self
            return

        generator = torch.Generator()
        generator.manual_seed(self.seed + epoch)
        for index in torch.randperm(len(self), generator=generator).tolist():
            yield self._range_at(index)


def partition(
    dataset_size: int,
    batch_size: int,
    shuffle: bool = False,
    seed: int = 42,
) -> BatchScheduler:
    """Partition [0, dataset_size) into contiguous batches of batch_size."""
    return BatchScheduler(dataset_size, batch_size, shuffle=shuffle, seed=seed)
