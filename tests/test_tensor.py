"""Tests for TensorView: element access, sub-views and storage sharing."""

import itertools

import numpy as np
import pytest

from pylinterp import DimensionMismatchError, InvalidRangeError, OutOfRangeError, TensorView
from conftest import NESTED_3D


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_from_nested_3d(self):
        t = TensorView.from_nested(NESTED_3D)
        assert t.shape == (2, 2, 3)
        assert t.read(0, 0, 0) == 1
        assert t.read(1, 1, 2) == 12

    def test_from_nested_1d(self):
        t = TensorView.from_nested([1, 2, 3, 4, 5])
        assert [t.read(i) for i in range(5)] == [1, 2, 3, 4, 5]

    def test_row_major_strides(self):
        t = TensorView((2, 2, 3))
        assert t.strides == (6, 3, 1)
        assert t.offset == 0
        assert t.size == 12

    def test_column_major_strides(self):
        t = TensorView((2, 2, 3), order="F")
        assert t.strides == (1, 2, 4)

    def test_column_major_reads_logical_elements(self):
        arr = np.arange(12.0).reshape(2, 2, 3)
        t = TensorView(arr.shape, arr, order="F")
        for idx in np.ndindex(*arr.shape):
            assert t.read(*idx) == arr[idx]

    def test_zeros_when_no_buffer(self):
        t = TensorView((3, 4))
        assert t.to_numpy().sum() == 0.0
        assert not t.is_view

    def test_wraps_contiguous_buffer_without_copy(self):
        buf = np.arange(6.0)
        t = TensorView((2, 3), buf)
        t.write(1, 1, 99.0)
        assert buf[4] == 99.0

    def test_buffer_length_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError, match="needs 6"):
            TensorView((2, 3), np.arange(5.0))

    @pytest.mark.parametrize("shape", [(0, 3), (2, -1), ()])
    def test_bad_extent_raises(self, shape):
        with pytest.raises(InvalidRangeError):
            TensorView(shape)

    def test_integer_dtype_rejected(self):
        with pytest.raises(TypeError, match="floating-point"):
            TensorView((2,), dtype=np.int64)

    def test_float32_supported(self):
        t = TensorView((2, 2), [1, 2, 3, 4], dtype=np.float32)
        assert t.dtype == np.float32
        assert t[1, 0] == 3.0


# ---------------------------------------------------------------------------
# Element access
# ---------------------------------------------------------------------------

class TestElementAccess:
    def test_read_write_2d(self):
        t = TensorView.from_nested([[1, 2, 3], [4, 5, 6]])
        assert t.read(0, 1) == 2
        t.write(0, 1, 10)
        assert t.read(0, 1) == 10

    def test_getitem_setitem(self):
        t = TensorView.from_nested([[1, 2], [3, 4]])
        t[1, 0] = 7.5
        assert t[1, 0] == 7.5
        assert t[(1, 0)] == 7.5

    def test_getitem_1d(self):
        t = TensorView.from_nested([4, 5, 6])
        assert t[2] == 6
        assert len(t) == 3

    def test_flat_index_row_major(self, tensor_3d):
        assert tensor_3d.flat_index(1, 0, 2) == 8

    @pytest.mark.parametrize("index", [(2, 0, 0), (0, 2, 0), (0, 0, 3), (-1, 0, 0)])
    def test_out_of_range(self, tensor_3d, index):
        with pytest.raises(OutOfRangeError, match="out of range"):
            tensor_3d.read(*index)

    def test_wrong_number_of_indices(self, tensor_3d):
        with pytest.raises(OutOfRangeError, match="Expected 3 indices"):
            tensor_3d.read(0, 0)

    def test_out_of_range_is_index_error(self, tensor_3d):
        with pytest.raises(IndexError):
            tensor_3d[5, 0, 0]

    def test_write_needs_value(self, tensor_3d):
        with pytest.raises(TypeError):
            tensor_3d.write(0)

    def test_indices_row_major(self):
        t = TensorView((2, 2))
        assert list(t.indices()) == [(0, 0), (0, 1), (1, 0), (1, 1)]


# ---------------------------------------------------------------------------
# Sub-views
# ---------------------------------------------------------------------------

class TestSubview:
    def test_half_open_single_element(self, tensor_3d):
        sub = tensor_3d.subview((1, 2), (0, 1), (1, 2))
        assert sub.shape == (1, 1, 1)
        assert sub.read(0, 0, 0) == 8
        assert sub.tolist() == [[[8.0]]]

    def test_closed_ranges(self, tensor_3d):
        sub = tensor_3d.subview((1, 1), (0, 1), (1, 2), closed=True)
        assert sub.shape == (1, 2, 2)
        assert sub.read(0, 0, 0) == 8
        assert sub.read(0, 0, 1) == 9
        assert sub.read(0, 1, 0) == 11
        assert sub.read(0, 1, 1) == 12

    def test_closed_2d_block(self):
        t = TensorView.from_nested([[1, 2, 2], [2, 3, 3], [3, 3, 4]])
        sub = t.subview((0, 1), (0, 1), closed=True)
        assert sub.tolist() == [[1.0, 2.0], [2.0, 3.0]]

    def test_full_3x3_block(self):
        t = TensorView((3, 3), [1, 2, 2, 2, 3, 3, 3, 3, 4])
        sub = t.subview((0, 3), (0, 3))
        assert sub.read(2, 2) == 4
        assert sub == t

    def test_slices_and_ints(self, tensor_3d):
        sub = tensor_3d.subview(1, slice(None), slice(0, 3, 2))
        assert sub.shape == (1, 2, 2)
        assert sub.tolist() == [[[7.0, 9.0], [10.0, 12.0]]]
        assert sub.strides == (6, 3, 2)

    def test_list_of_ranges(self, tensor_3d):
        a = tensor_3d.subview([(0, 2), (1, 2), (0, 2)])
        b = tensor_3d.subview((0, 2), (1, 2), (0, 2))
        assert a == b

    def test_list_pair_on_1d_view(self):
        t = TensorView((4,), [1.0, 2.0, 3.0, 4.0])
        assert t.subview([0, 2]).tolist() == [1.0, 2.0]
        assert t.subview([1, 2], closed=True).tolist() == [2.0, 3.0]
        assert t.subview([(1, 3)]).tolist() == [2.0, 3.0]

    def test_list_of_ints_on_2d_view(self):
        t = TensorView((2, 3), range(6))
        assert t.subview([1, 2]).tolist() == [[5.0]]

    def test_metadata(self, tensor_3d):
        sub = tensor_3d.subview((1, 2), (1, 2), (1, 3))
        assert sub.offset == 6 + 3 + 1
        assert sub.strides == tensor_3d.strides
        assert sub.is_view
        assert sub.parent is tensor_3d
        assert sub.buffer is tensor_3d.buffer

    def test_round_trip_all_ranges(self, tensor_3d):
        """Every element of every sub-view matches the parent at the shifted index."""
        per_axis = [
            [(a, b) for a in range(n) for b in range(a + 1, n + 1)]
            for n in tensor_3d.shape
        ]
        for ranges in itertools.product(*per_axis):
            sub = tensor_3d.subview(*ranges)
            assert sub.shape == tuple(b - a for a, b in ranges)
            for idx in sub.indices():
                shifted = tuple(a + i for (a, _), i in zip(ranges, idx))
                assert sub.read(*idx) == tensor_3d.read(*shifted)

    def test_nested_subview(self, tensor_3d):
        outer = tensor_3d.subview((0, 2), (1, 2), (1, 3))
        inner = outer.subview((1, 2), (0, 1), (1, 2))
        assert inner.read(0, 0, 0) == tensor_3d.read(1, 1, 2)
        assert inner.buffer is tensor_3d.buffer

    def test_write_through_subview_visible_in_parent(self, tensor_3d):
        sub = tensor_3d.subview((0, 1), (1, 2), (0, 3))
        sub.write(0, 0, 2, -1.0)
        assert tensor_3d.read(0, 1, 2) == -1.0

    def test_subview_outlives_parent_name(self):
        t = TensorView((2, 2), [1, 2, 3, 4])
        sub = t.subview((1, 2), (0, 2))
        del t
        assert sub.tolist() == [[3.0, 4.0]]

    def test_subview_index_out_of_range(self, tensor_3d):
        sub = tensor_3d.subview((0, 1), (0, 1), (0, 2))
        with pytest.raises(OutOfRangeError):
            sub.read(0, 0, 2)

    @pytest.mark.parametrize("ranges", [
        ((1, 1), (0, 1), (0, 1)),
        ((1, 0), (0, 1), (0, 1)),
        ((0, 3), (0, 1), (0, 1)),
        ((-1, 1), (0, 1), (0, 1)),
        ((0, 1), (0, 1), slice(0, 2, 0)),
        ((0, 1), (0, 1), "ab"),
    ])
    def test_invalid_ranges(self, tensor_3d, ranges):
        with pytest.raises(InvalidRangeError):
            tensor_3d.subview(*ranges)

    def test_wrong_number_of_ranges(self, tensor_3d):
        with pytest.raises(InvalidRangeError, match="Expected 3 ranges"):
            tensor_3d.subview((0, 1), (0, 1))


# ---------------------------------------------------------------------------
# NumPy interop and read-only storage
# ---------------------------------------------------------------------------

class TestNumpyInterop:
    def test_to_numpy_shares_memory(self, tensor_3d):
        sub = tensor_3d.subview((0, 2), (1, 2), (1, 3))
        arr = sub.to_numpy()
        np.testing.assert_array_equal(arr, np.arange(1.0, 13.0).reshape(2, 2, 3)[:, 1:2, 1:3])
        assert np.shares_memory(arr, tensor_3d.buffer)

    def test_asarray(self, tensor_3d):
        arr = np.asarray(tensor_3d.subview((1, 2), (0, 2), (0, 3)))
        assert arr.shape == (1, 2, 3)
        assert arr[0, 1, 2] == 12.0

    def test_array_no_copy_with_conversion_raises(self, tensor_3d):
        with pytest.raises(ValueError, match="without a copy"):
            tensor_3d.__array__(np.float32, copy=False)
        arr = tensor_3d.__array__(np.float32)
        assert arr.dtype == np.float32
        assert not np.shares_memory(arr, tensor_3d.buffer)

    def test_array_no_copy_same_dtype_shares(self, tensor_3d):
        arr = tensor_3d.__array__(np.float64, copy=False)
        assert np.shares_memory(arr, tensor_3d.buffer)

    def test_copy_is_independent(self, tensor_3d):
        sub = tensor_3d.subview((1, 2), (0, 2), (0, 3))
        dup = sub.copy()
        assert not dup.is_view
        assert dup == sub
        dup.write(0, 0, 0, 100.0)
        assert sub.read(0, 0, 0) == 7.0

    def test_freeze_blocks_writes(self):
        t = TensorView((2, 2), [1, 2, 3, 4]).freeze()
        assert t.readonly
        with pytest.raises(ValueError, match="read-only"):
            t.write(0, 0, 5.0)

    def test_freeze_applies_to_subviews(self):
        t = TensorView((2, 2), [1, 2, 3, 4])
        sub = t.subview((0, 1), (0, 2))
        t.freeze()
        assert sub.readonly
        assert not sub.to_numpy().flags.writeable

    def test_repr(self, tensor_3d):
        assert "shape=(2, 2, 3)" in repr(tensor_3d)
        assert repr(tensor_3d.subview((0, 1), (0, 1), (0, 1))).endswith("view)")
