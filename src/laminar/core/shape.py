"""
N-dimensional shape descriptor for flat unit arrays.

Layers keep their units in flat 1-D tensors; a Shape maps an n-dimensional
unit index onto that flat offset via explicit strides. Offsets are not
bounds checked here: callers at the API boundary (e.g.
``DeepLayer.value_at_index``) check the result against ``len(shape)``.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np


def row_major_strides(shape: Sequence[int]) -> List[int]:
    """Strides for row-major (C) order: last dimension varies fastest."""
    strides = [0] * len(shape)
    acc = 1
    for i in range(len(shape) - 1, -1, -1):
        strides[i] = acc
        acc *= shape[i]
    return strides


def col_major_strides(shape: Sequence[int]) -> List[int]:
    """Strides for column-major (Fortran) order: first dimension varies fastest."""
    strides = [0] * len(shape)
    acc = 1
    for i, n in enumerate(shape):
        strides[i] = acc
        acc *= n
    return strides


def total_element_count(shape: Sequence[int]) -> int:
    """Product of the dimension sizes (0 for an empty shape)."""
    if len(shape) == 0:
        return 0
    return int(np.prod(np.asarray(shape, dtype=np.int64)))


def flat_offset(strides: Sequence[int], index: Sequence[int]) -> int:
    """Flat offset of an n-dimensional index. No bounds checking."""
    return int(np.dot(np.asarray(index, dtype=np.int64), np.asarray(strides, dtype=np.int64)))


class Shape:
    """Dimension sizes, strides and optional dimension names.

    Args:
        shape: Size of each dimension
        strides: Explicit strides; row-major strides when None
        names: Optional dimension names, one per dimension

    Example:
        >>> sh = Shape([2, 3])
        >>> len(sh)
        6
        >>> sh.offset([1, 2])
        5
    """

    def __init__(
        self,
        shape: Sequence[int],
        strides: Optional[Sequence[int]] = None,
        names: Optional[Sequence[str]] = None,
    ):
        self.set_shape(shape, strides, names)

    def set_shape(
        self,
        shape: Sequence[int],
        strides: Optional[Sequence[int]] = None,
        names: Optional[Sequence[str]] = None,
    ) -> None:
        if strides is not None and len(strides) != len(shape):
            raise ValueError(f"strides {list(strides)} do not match shape {list(shape)}")
        if names is not None and len(names) != len(shape):
            raise ValueError(f"names {list(names)} do not match shape {list(shape)}")
        self._shape = [int(n) for n in shape]
        self._strides = list(strides) if strides is not None else row_major_strides(self._shape)
        self._names = list(names) if names is not None else [""] * len(self._shape)

    @property
    def dims(self) -> List[int]:
        return list(self._shape)

    @property
    def strides(self) -> List[int]:
        return list(self._strides)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def num_dims(self) -> int:
        return len(self._shape)

    def dim_name(self, i: int) -> str:
        return self._names[i]

    def __len__(self) -> int:
        return total_element_count(self._shape)

    def is_row_major(self) -> bool:
        return self._strides == row_major_strides(self._shape)

    def is_col_major(self) -> bool:
        return self._strides == col_major_strides(self._shape)

    def is_contiguous(self) -> bool:
        return self.is_row_major() or self.is_col_major()

    def offset(self, index: Sequence[int]) -> int:
        """Flat offset of an n-dimensional index (not bounds checked)."""
        return flat_offset(self._strides, index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self._shape == other._shape and self._strides == other._strides

    def __repr__(self) -> str:
        return f"Shape({self._shape})"
