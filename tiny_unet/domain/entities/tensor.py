"""Activation tensor entity - a rank-3 (channels, height, width) buffer."""
from dataclasses import dataclass

import numpy as np

from tiny_unet.domain.errors import ShapeMismatchError


def readonly_array(values, ndim: int, name: str) -> np.ndarray:
    """
    Copy `values` into a read-only float64 array of the given rank.

    Parameters
    ----------
    values : array_like
        Nested sequences or an ndarray.
    ndim : int
        Required number of dimensions.
    name : str
        Field name used in the error message.

    Returns
    -------
    np.ndarray
        A fresh, non-writeable float64 array.

    Raises
    ------
    ShapeMismatchError
        If the array does not have `ndim` dimensions.
    """
    array = np.array(values, dtype=np.float64, copy=True)
    if array.ndim != ndim:
        raise ShapeMismatchError(
            f"{name} must have {ndim} dimensions, got shape {array.shape}"
        )
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class ActivationTensor:
    """
    Feature map flowing through the network.

    Attributes
    ----------
    channels : int
        Number of channels.
    height : int
        Number of rows.
    width : int
        Number of columns.
    data : np.ndarray
        Read-only float64 array of shape (channels, height, width).
    """

    channels: int
    height: int
    width: int
    data: np.ndarray

    def __post_init__(self) -> None:
        """Validate the declared dimensions against the data extents."""
        for dim_name in ("channels", "height", "width"):
            value = getattr(self, dim_name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
                raise ShapeMismatchError(
                    f"{dim_name} must be a non-negative integer, got {value!r}"
                )
        data = readonly_array(self.data, ndim=3, name="data")
        if data.shape != (self.channels, self.height, self.width):
            raise ShapeMismatchError(
                f"Declared shape {(self.channels, self.height, self.width)} "
                f"does not match data shape {data.shape}"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, values) -> "ActivationTensor":
        """Build a tensor whose dimensions are read from a rank-3 array."""
        data = readonly_array(values, ndim=3, name="data")
        channels, height, width = data.shape
        return cls(channels=channels, height=height, width=width, data=data)

    @classmethod
    def zeros(cls, channels: int, height: int, width: int) -> "ActivationTensor":
        """Build an all-zero tensor."""
        return cls(
            channels=channels,
            height=height,
            width=width,
            data=np.zeros((channels, height, width)),
        )

    @property
    def shape(self) -> tuple[int, int, int]:
        """Return (channels, height, width)."""
        return (self.channels, self.height, self.width)
