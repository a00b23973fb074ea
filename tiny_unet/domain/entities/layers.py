"""Layer entities: linear layers, block projections, convolutions and the time MLP."""
from dataclasses import dataclass

import numpy as np

from tiny_unet.domain.entities.tensor import readonly_array
from tiny_unet.domain.errors import ShapeMismatchError

KERNEL_SIZE = 3


@dataclass(frozen=True, eq=False)
class LinearLayer:
    """
    Dense layer computing ``bias + weights @ x``.

    Attributes
    ----------
    weights : np.ndarray
        Read-only array of shape (output_dim, input_dim).
    bias : np.ndarray
        Read-only array of shape (output_dim,).
    """

    weights: np.ndarray
    bias: np.ndarray

    def __post_init__(self) -> None:
        weights = readonly_array(self.weights, ndim=2, name="weights")
        bias = readonly_array(self.bias, ndim=1, name="bias")
        if bias.shape[0] != weights.shape[0]:
            raise ShapeMismatchError(
                f"bias has {bias.shape[0]} entries but weights have "
                f"{weights.shape[0]} output rows"
            )
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", bias)

    @property
    def input_dim(self) -> int:
        return self.weights.shape[1]

    @property
    def output_dim(self) -> int:
        return self.weights.shape[0]


@dataclass(frozen=True, eq=False)
class BlockProjection(LinearLayer):
    """Projects the shared noise embedding to one conditioning value per channel."""

    @property
    def embedding_dim(self) -> int:
        return self.input_dim


@dataclass(frozen=True, eq=False)
class ConvolutionLayer:
    """
    3x3 convolution with an optional noise-conditioning projection.

    Attributes
    ----------
    name : str
        Diagnostic name (e.g. "encoderConv").
    kernels : np.ndarray
        Read-only array of shape (out_channels, in_channels, 3, 3).
    bias : np.ndarray
        Read-only array of shape (out_channels,).
    projection : BlockProjection | None
        Per-block conditioning projection, or None for an unconditioned layer.
    """

    name: str
    kernels: np.ndarray
    bias: np.ndarray
    projection: BlockProjection | None = None

    def __post_init__(self) -> None:
        kernels = readonly_array(self.kernels, ndim=4, name=f"{self.name}.kernels")
        if kernels.shape[2:] != (KERNEL_SIZE, KERNEL_SIZE):
            raise ShapeMismatchError(
                f"{self.name}: kernels must be {KERNEL_SIZE}x{KERNEL_SIZE}, "
                f"got {kernels.shape[2:]}"
            )
        bias = readonly_array(self.bias, ndim=1, name=f"{self.name}.bias")
        if bias.shape[0] != kernels.shape[0]:
            raise ShapeMismatchError(
                f"{self.name}: bias has {bias.shape[0]} entries for "
                f"{kernels.shape[0]} output channels"
            )
        if self.projection is not None and self.projection.output_dim != kernels.shape[0]:
            raise ShapeMismatchError(
                f"{self.name}: projection outputs {self.projection.output_dim} values "
                f"for {kernels.shape[0]} output channels"
            )
        object.__setattr__(self, "kernels", kernels)
        object.__setattr__(self, "bias", bias)

    @property
    def in_channels(self) -> int:
        return self.kernels.shape[1]

    @property
    def out_channels(self) -> int:
        return self.kernels.shape[0]

    @property
    def is_conditioned(self) -> bool:
        return self.projection is not None


@dataclass(frozen=True, eq=False)
class TimeEmbeddingMLP:
    """
    Shared two-layer perceptron mapping cnoise to the noise embedding.

    `hidden_layer` maps the scalar cnoise to `hidden_dim` values (followed by
    SiLU); `output_layer` maps those to `embedding_dim` values.
    """

    hidden_layer: LinearLayer
    output_layer: LinearLayer

    def __post_init__(self) -> None:
        if self.hidden_layer.input_dim != 1:
            raise ShapeMismatchError(
                f"hidden_layer must take a single scalar input, "
                f"got input_dim={self.hidden_layer.input_dim}"
            )
        if self.output_layer.input_dim != self.hidden_layer.output_dim:
            raise ShapeMismatchError(
                f"output_layer expects {self.output_layer.input_dim} inputs but "
                f"hidden_layer produces {self.hidden_layer.output_dim}"
            )

    @property
    def hidden_dim(self) -> int:
        return self.hidden_layer.output_dim

    @property
    def embedding_dim(self) -> int:
        return self.output_layer.output_dim
