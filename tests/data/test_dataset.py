# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for dataset loading, normalisation and the train/valid split.
"""

from pathlib import Path

import pytest
import torch

from dnntrain.data.dataset import DataFormatError, DataSet, NormType, load_dataset, split
from dnntrain.training.batching.core import BatchRange
from dnntrain.training.evaluation.core import ErrorMeasure
from dnntrain.training.interfaces import DatasetProvider


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "data.dat"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadDense:
    def test_reads_labels_and_features(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "0 1.0 2.0\n1 3.0 4.0\n"))
        assert len(dataset) == 2
        assert dataset.input_dim == 2
        assert dataset.y.tolist() == [0, 1]
        assert torch.equal(dataset.x, torch.tensor([[1.0, 2.0], [3.0, 4.0]]))

    def test_skips_blank_and_comment_lines(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "# header\n\n0 1\n\n1 2\n"))
        assert len(dataset) == 2

    def test_short_lines_are_zero_filled(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "0 1 2 3\n1 5\n"))
        assert dataset.input_dim == 3
        assert dataset.x[1].tolist() == [5.0, 0.0, 0.0]

    def test_label_base_one_shifts_classes(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "1 0.5\n2 0.5\n3 0.5\n"), label_base=1)
        assert dataset.y.tolist() == [0, 1, 2]
        assert dataset.num_classes == 3

    def test_label_below_base_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError, match="label_base"):
            load_dataset(_write(tmp_path, "0 0.5\n"), label_base=1)

    @pytest.mark.parametrize("label", ["1.7", "nan", "inf"])
    def test_non_integer_class_label_is_rejected(self, tmp_path: Path, label: str) -> None:
        with pytest.raises(DataFormatError, match="line 2"):
            load_dataset(_write(tmp_path, f"0 0.5\n{label} 0.5\n"))

    def test_integral_float_label_is_accepted(self, tmp_path: Path) -> None:
        assert load_dataset(_write(tmp_path, "2.0 0.5\n")).y.tolist() == [2]

    def test_bad_feature_is_rejected_with_line_number(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError, match="line 2"):
            load_dataset(_write(tmp_path, "0 1\n1 abc\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_dataset(tmp_path / "nope.dat")


class TestLoadSparse:
    def test_indices_are_one_based(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "1 1:0.5 4:2.0\n0 2:1.0\n"))
        assert dataset.input_dim == 4
        assert dataset.x[0].tolist() == [0.5, 0.0, 0.0, 2.0]
        assert dataset.x[1].tolist() == [0.0, 1.0, 0.0, 0.0]

    def test_explicit_input_dim_pads(self, tmp_path: Path) -> None:
        dataset = load_dataset(_write(tmp_path, "0 1:1.0\n"), input_dim=5)
        assert dataset.input_dim == 5

    def test_index_beyond_explicit_dim_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError, match="input_dim"):
            load_dataset(_write(tmp_path, "0 7:1.0\n"), input_dim=3)

    def test_zero_index_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(DataFormatError):
            load_dataset(_write(tmp_path, "0 0:1.0\n"))


class TestLoadRegression:
    def test_targets_are_float_columns(self, tmp_path: Path) -> None:
        dataset = load_dataset(
            _write(tmp_path, "0.5 1 2\n-1.25 3 4\n"), measure=ErrorMeasure.REGRESSION
        )
        assert dataset.y.shape == (2, 1)
        assert dataset.y[:, 0].tolist() == [0.5, -1.25]
        assert dataset.num_classes == 1


class TestProvider:
    def test_satisfies_provider_protocol(self) -> None:
        dataset = DataSet(torch.zeros(4, 2), torch.zeros(4, dtype=torch.long))
        assert isinstance(dataset, DatasetProvider)

    def test_batch_range_indexing(self) -> None:
        dataset = DataSet(torch.arange(10.0).reshape(5, 2), torch.arange(5))
        batch = dataset[BatchRange(1, 3)]
        assert batch.y.tolist() == [1, 2]
        assert batch.x.shape == (2, 2)

    def test_range_past_the_end_is_rejected(self) -> None:
        dataset = DataSet(torch.zeros(3, 2), torch.zeros(3, dtype=torch.long))
        with pytest.raises(IndexError):
            dataset[BatchRange(2, 4)]

    def test_mismatched_rows_are_rejected(self) -> None:
        with pytest.raises(ValueError):
            DataSet(torch.zeros(3, 2), torch.zeros(4, dtype=torch.long))


class TestNormalize:
    def test_rescale_maps_each_dimension_to_unit_range(self) -> None:
        x = torch.tensor([[0.0, 10.0], [5.0, 20.0], [10.0, 30.0]])
        dataset = DataSet(x, torch.zeros(3, dtype=torch.long)).normalize(NormType.RESCALE)
        assert torch.allclose(dataset.x, torch.tensor([[0.0, 0.0], [0.5, 0.5], [1.0, 1.0]]))

    def test_standard_gives_zero_mean_unit_std(self) -> None:
        x = torch.tensor([[1.0], [2.0], [3.0], [4.0]])
        dataset = DataSet(x, torch.zeros(4, dtype=torch.long)).normalize("standard")
        assert dataset.x.mean().item() == pytest.approx(0.0, abs=1e-6)
        assert dataset.x.std(unbiased=False).item() == pytest.approx(1.0, abs=1e-5)

    def test_constant_dimension_does_not_divide_by_zero(self) -> None:
        x = torch.tensor([[3.0, 1.0], [3.0, 2.0]])
        dataset = DataSet(x, torch.zeros(2, dtype=torch.long)).normalize(NormType.RESCALE)
        assert torch.isfinite(dataset.x).all()
        assert dataset.x[:, 0].tolist() == [0.0, 0.0]

    def test_original_is_untouched(self) -> None:
        x = torch.tensor([[0.0], [2.0]])
        original = DataSet(x, torch.zeros(2, dtype=torch.long))
        original.normalize(NormType.RESCALE)
        assert original.x[1, 0].item() == 2.0


class TestSplit:
    def test_every_ratio_plus_one_th_sample_is_validation(self) -> None:
        dataset = DataSet(torch.arange(12.0).reshape(12, 1), torch.arange(12))
        train, valid = split(dataset, 3)
        assert valid.y.tolist() == [3, 7, 11]
        assert len(train) == 9

    def test_split_covers_every_sample_once(self) -> None:
        dataset = DataSet(torch.arange(17.0).reshape(17, 1), torch.arange(17))
        train, valid = split(dataset, 5)
        assert sorted(train.y.tolist() + valid.y.tolist()) == list(range(17))

    def test_ratio_below_one_is_rejected(self) -> None:
        dataset = DataSet(torch.zeros(2, 1), torch.zeros(2, dtype=torch.long))
        with pytest.raises(ValueError):
            split(dataset, 0)
