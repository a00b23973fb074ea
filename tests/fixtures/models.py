"""Hand-built models and scripted random sources for tests.

Every model here has fully known weights so forward-pass values can be
worked out by hand.
"""
import numpy as np

from tiny_unet.domain.entities.layers import (
    BlockProjection,
    ConvolutionLayer,
    LinearLayer,
    TimeEmbeddingMLP,
)
from tiny_unet.domain.entities.models import TinyUNet
from tiny_unet.domain.interfaces.random_source import UniformSource

HIDDEN_DIM = 4
EMBEDDING_DIM = 8


class ScriptedUniformSource(UniformSource):
    """Returns a fixed sequence of draws, cycling when exhausted, and counts calls."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def uniform(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def zero_projection(output_dim: int, bias=None) -> BlockProjection:
    if bias is None:
        bias = np.zeros(output_dim)
    return BlockProjection(weights=np.zeros((output_dim, EMBEDDING_DIM)), bias=bias)


def zero_mlp() -> TimeEmbeddingMLP:
    return TimeEmbeddingMLP(
        hidden_layer=LinearLayer(weights=np.zeros((HIDDEN_DIM, 1)), bias=np.zeros(HIDDEN_DIM)),
        output_layer=LinearLayer(
            weights=np.zeros((EMBEDDING_DIM, HIDDEN_DIM)), bias=np.zeros(EMBEDDING_DIM)
        ),
    )


def conv_layer(name, in_channels, out_channels, center=0.0, conditioned=True,
               projection_bias=None) -> ConvolutionLayer:
    """Convolution whose only non-zero weight is kernels[0, 0, 1, 1] = center."""
    kernels = np.zeros((out_channels, in_channels, 3, 3))
    kernels[0, 0, 1, 1] = center
    projection = zero_projection(out_channels, projection_bias) if conditioned else None
    return ConvolutionLayer(
        name=name,
        kernels=kernels,
        bias=np.zeros(out_channels),
        projection=projection,
    )


def build_model(center: float = 0.0, input_projection_bias=None) -> TinyUNet:
    """Reference-shaped model with zero MLP/projection weights."""
    return TinyUNet(
        time_embed_mlp=zero_mlp(),
        input_conv=conv_layer("inputConv", 1, 2, center, projection_bias=input_projection_bias),
        encoder_conv=conv_layer("encoderConv", 2, 2, center),
        bottleneck_conv=conv_layer("bottleneckConv", 2, 2, center),
        decoder_conv=conv_layer("decoderConv", 4, 2, center),
        output_conv=conv_layer("outputConv", 2, 1, center, conditioned=False),
    )


def identity_model() -> TinyUNet:
    """Every convolution copies channel 0 through (center tap = 1); no conditioning signal."""
    return build_model(center=1.0)


def zero_model() -> TinyUNet:
    """Every weight and bias is zero."""
    return build_model(center=0.0)
