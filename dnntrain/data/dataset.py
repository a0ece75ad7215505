# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
In-memory dataset provider.

File format, one sample per line:
  dense:  <label> <f1> <f2> ... <fD>
  sparse: <label> <idx>:<val> <idx>:<val> ...   (1-based indices, LIBSVM style)

Blank lines and lines starting with '#' are ignored. A file may mix dense and
sparse lines. With input_dim=0 the dimension is the widest line seen.
Shorter dense lines and missing sparse indices are zero-filled.

Classification labels are integers shifted by `label_base` so classes
start at 0. Regression targets are kept as float columns of shape (N, 1).

Normalisation and splitting return new DataSet objects; a DataSet is never
modified after construction.
"""

import logging
from enum import Enum
from pathlib import Path

import torch

from dnntrain.logging.logger import get_logger
from dnntrain.training.batching.core import BatchRange
from dnntrain.training.evaluation.core import ErrorMeasure
from dnntrain.training.interfaces import Batch

logger: logging.Logger = get_logger(__name__)


class DataFormatError(ValueError):
    """Raised when a dataset file line can't be parsed."""


class NormType(str, Enum):
    NONE = "none"
    RESCALE = "rescale"
    STANDARD = "standard"


class DataSet:
    """
    Samples held as tensors: x (N, D) float32 and y (N,) int64 or (N, 1) float32.

    Implements the DatasetProvider contract: len() and indexing by BatchRange.
    """

    def __init__(
        self,
        x: torch.Tensor,
        y: torch.Tensor,
        measure: ErrorMeasure = ErrorMeasure.CLASSIFICATION,
    ) -> None:
        if x.dim() != 2:
            raise ValueError(f"x must be 2-D (N, D), got shape {tuple(x.shape)}")
        if x.shape[0] != y.shape[0]:
            raise ValueError(f"x has {x.shape[0]} rows but y has {y.shape[0]}")
        self.x = x
        self.y = y
        self.measure = measure

    def __len__(self) -> int:
        return self.x.shape[0]

    def __getitem__(self, batch: BatchRange) -> Batch:
        if batch.end > len(self):
            raise IndexError(f"Batch [{batch.start}, {batch.end}) exceeds dataset size {len(self)}")
        window = batch.as_slice()
        return Batch(self.x[window], self.y[window])

    @property
    def input_dim(self) -> int:
        return self.x.shape[1]

    @property
    def num_classes(self) -> int:
        """Number of classes (classification) or target width (regression)."""
        if self.measure is ErrorMeasure.REGRESSION:
            return self.y.shape[1]
        if len(self) == 0:
            return 0
        return int(self.y.max().item()) + 1

    def normalize(self, norm_type: NormType | str) -> "DataSet":
        """
        Return a normalised copy.

        rescale: (x - min) / (max - min) per dimension
        standard: (x - mean) / std per dimension
        Constant dimensions map to 0 instead of dividing by zero.
        """
        norm_type = NormType(norm_type)
        if norm_type is NormType.NONE or len(self) == 0:
            return self

        if norm_type is NormType.RESCALE:
            low = self.x.min(dim=0).values
            span = self.x.max(dim=0).values - low
            span = torch.where(span > 0, span, torch.ones_like(span))
            x = (self.x - low) / span
        else:
            mean = self.x.mean(dim=0)
            std = self.x.std(dim=0, unbiased=False)
            std = torch.where(std > 0, std, torch.ones_like(std))
            x = (self.x - mean) / std

        return DataSet(x, self.y, self.measure)

    def summary(self) -> dict[str, object]:
        info: dict[str, object] = {
            "samples": len(self),
            "input_dim": self.input_dim,
            "measure": self.measure.value,
        }
        if self.measure is ErrorMeasure.CLASSIFICATION and len(self) > 0:
            info["num_classes"] = self.num_classes
            info["class_counts"] = torch.bincount(self.y).tolist()
        return info


def _parse_line(line: str, line_no: int) -> tuple[str, dict[int, float]]:
    tokens = line.split()
    label = tokens[0]
    features: dict[int, float] = {}
    for position, token in enumerate(tokens[1:]):
        index_text, sep, value_text = token.partition(":")
        try:
            index = int(index_text) - 1 if sep else position
            value = float(value_text if sep else token)
        except ValueError as err:
            raise DataFormatError(f"line {line_no}: bad feature '{token}'") from err
        if index < 0:
            raise DataFormatError(f"line {line_no}: feature index must be >= 1 in '{token}'")
        features[index] = value
    return label, features


def load_dataset(
    path: Path,
    input_dim: int = 0,
    label_base: int = 0,
    measure: ErrorMeasure = ErrorMeasure.CLASSIFICATION,
) -> DataSet:
    """
    Read a dense or sparse text dataset.

    Args:
        path: Dataset file.
        input_dim: Feature dimension; 0 auto-detects from the file.
        label_base: Subtracted from classification labels (0 or 1).
        measure: Decides whether labels are class ids or regression targets.

    Returns:
        The loaded DataSet.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        DataFormatError: On unparsable lines, labels below label_base, or
            features beyond an explicit input_dim.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    labels: list[str] = []
    rows: list[dict[int, float]] = []
    line_numbers: list[int] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_no, raw in enumerate(handle, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            label, features = _parse_line(line, line_no)
            labels.append(label)
            rows.append(features)
            line_numbers.append(line_no)

    detected = max((max(r) + 1 for r in rows if r), default=0)
    if input_dim == 0:
        input_dim = detected
    elif detected > input_dim:
        raise DataFormatError(
            f"{path}: found feature index {detected}, beyond input_dim={input_dim}"
        )

    x = torch.zeros(len(rows), input_dim, dtype=torch.float32)
    for row_index, features in enumerate(rows):
        for col, value in features.items():
            x[row_index, col] = value

    if measure is ErrorMeasure.CLASSIFICATION:
        class_ids: list[int] = []
        for label, line_no in zip(labels, line_numbers):
            try:
                value = float(label)
            except ValueError as err:
                raise DataFormatError(f"line {line_no}: bad label '{label}'") from err
            if not value.is_integer():
                raise DataFormatError(f"line {line_no}: class label '{label}' is not an integer")
            class_id = int(value) - label_base
            if class_id < 0:
                raise DataFormatError(
                    f"line {line_no}: label {label} is below label_base={label_base}"
                )
            class_ids.append(class_id)
        y = torch.tensor(class_ids, dtype=torch.long)
    else:
        try:
            y = torch.tensor([[float(label)] for label in labels], dtype=torch.float32)
        except ValueError as err:
            raise DataFormatError(f"{path}: non-numeric regression target ({err})") from err
        y = y.reshape(len(labels), 1)

    dataset = DataSet(x, y, measure)
    logger.info("Dataset loaded", extra={"path": str(path), **dataset.summary()})
    return dataset


def split(dataset: DataSet, ratio: int) -> tuple[DataSet, DataSet]:
    """
    Split into (train, valid) with a ratio:1 proportion.

    Every (ratio + 1)-th sample (indices ratio, 2*ratio + 1, ...) goes to
    validation, which keeps both sides spread evenly over the file.

    Raises:
        ValueError: If ratio < 1.
    """
    if ratio < 1:
        raise ValueError(f"ratio must be >= 1, got {ratio}")

    positions = torch.arange(len(dataset))
    valid_mask = (positions % (ratio + 1)) == ratio
    train_mask = ~valid_mask

    train = DataSet(dataset.x[train_mask], dataset.y[train_mask], dataset.measure)
    valid = DataSet(dataset.x[valid_mask], dataset.y[valid_mask], dataset.measure)

    logger.info(
        "Dataset split",
        extra={"ratio": ratio, "n_train": len(train), "n_valid": len(valid)},
    )
    return train, valid
