"""
Parameter initializer for the tiny U-Net.

Weights are drawn from a Xavier/Glorot-scaled Gaussian (mean 0, standard
deviation ``sqrt(2 / (fan_in + fan_out))``) produced with the Box-Muller
transform; biases start at exactly zero. All randomness comes from the
`UniformSource` passed by the caller.
"""
import logging
import math

import numpy as np

from tiny_unet.domain.engine.accounting import count_parameters
from tiny_unet.domain.entities.layers import (
    KERNEL_SIZE,
    BlockProjection,
    ConvolutionLayer,
    LinearLayer,
    TimeEmbeddingMLP,
)
from tiny_unet.domain.entities.models import TinyUNet
from tiny_unet.domain.errors import InitializationSingularityError
from tiny_unet.domain.interfaces.random_source import UniformSource

logger = logging.getLogger(__name__)

KERNEL_AREA = KERNEL_SIZE * KERNEL_SIZE


def xavier_normal(fan_in: int, fan_out: int, source: UniformSource) -> float:
    """
    Draw one Xavier-scaled Gaussian weight via Box-Muller.

    Parameters
    ----------
    fan_in : int
        Number of inputs feeding the weight's layer.
    fan_out : int
        Number of outputs of the weight's layer.
    source : UniformSource
        Supplier of the two uniform draws.

    Returns
    -------
    float
        ``sqrt(-2 ln u1) * cos(2 pi u2) * std``.

    Raises
    ------
    InitializationSingularityError
        If the first draw is not in (0, 1).
    """
    std = math.sqrt(2.0 / (fan_in + fan_out))
    u1 = source.uniform()
    u2 = source.uniform()
    if not 0.0 < u1 < 1.0:
        raise InitializationSingularityError(
            f"Box-Muller needs a first uniform draw in (0, 1), got {u1!r}"
        )
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2) * std


def _sample_weights(shape: tuple[int, ...], fan_in: int, fan_out: int,
                    source: UniformSource) -> np.ndarray:
    # Row-major draw order keeps a seeded source reproducible.
    weights = np.empty(shape, dtype=np.float64)
    for index in np.ndindex(*shape):
        weights[index] = xavier_normal(fan_in, fan_out, source)
    return weights


def create_linear_layer(input_dim: int, output_dim: int, source: UniformSource) -> LinearLayer:
    """Create a dense layer with Xavier weights and zero bias."""
    weights = _sample_weights((output_dim, input_dim), input_dim, output_dim, source)
    return LinearLayer(weights=weights, bias=np.zeros(output_dim))


def create_block_projection(embedding_dim: int, output_dim: int,
                            source: UniformSource) -> BlockProjection:
    """Create the per-block projection from the shared embedding to `output_dim` channels."""
    weights = _sample_weights((output_dim, embedding_dim), embedding_dim, output_dim, source)
    return BlockProjection(weights=weights, bias=np.zeros(output_dim))


def create_time_embedding_mlp(hidden_dim: int, embedding_dim: int,
                              source: UniformSource) -> TimeEmbeddingMLP:
    """Create the shared cnoise MLP (1 -> hidden_dim -> embedding_dim)."""
    return TimeEmbeddingMLP(
        hidden_layer=create_linear_layer(1, hidden_dim, source),
        output_layer=create_linear_layer(hidden_dim, embedding_dim, source),
    )


def create_conv_layer(
    name: str,
    in_channels: int,
    out_channels: int,
    source: UniformSource,
    embedding_dim: int | None = None,
) -> ConvolutionLayer:
    """
    Create a 3x3 convolution layer.

    Parameters
    ----------
    name : str
        Diagnostic layer name.
    in_channels : int
        Number of input channels.
    out_channels : int
        Number of output channels.
    source : UniformSource
        Supplier of uniform draws.
    embedding_dim : int | None, optional
        When given, a block projection from an `embedding_dim` embedding is
        attached (drawn after the kernels). None leaves the layer unconditioned.

    Returns
    -------
    ConvolutionLayer
        Layer with Xavier kernels, zero bias and the optional projection.
    """
    kernels = _sample_weights(
        (out_channels, in_channels, KERNEL_SIZE, KERNEL_SIZE),
        in_channels * KERNEL_AREA,
        out_channels * KERNEL_AREA,
        source,
    )
    projection = None
    if embedding_dim is not None:
        projection = create_block_projection(embedding_dim, out_channels, source)
    return ConvolutionLayer(
        name=name,
        kernels=kernels,
        bias=np.zeros(out_channels),
        projection=projection,
    )


def create_tiny_unet(source: UniformSource, hidden_dim: int = 4,
                     embedding_dim: int = 8) -> TinyUNet:
    """
    Create a freshly initialized tiny U-Net.

    Parameters
    ----------
    source : UniformSource
        Supplier of uniform draws; a seeded source gives a reproducible model.
    hidden_dim : int, optional
        Width of the time MLP hidden layer. Default is 4.
    embedding_dim : int, optional
        Size of the shared noise embedding. Default is 8.

    Returns
    -------
    TinyUNet
        New immutable model.
    """
    time_embed_mlp = create_time_embedding_mlp(hidden_dim, embedding_dim, source)

    # Each conditioned block projects to its own out_channels; the decoder
    # takes 4 = 2 upsampled + 2 skip channels.
    model = TinyUNet(
        time_embed_mlp=time_embed_mlp,
        input_conv=create_conv_layer("inputConv", 1, 2, source, embedding_dim),
        encoder_conv=create_conv_layer("encoderConv", 2, 2, source, embedding_dim),
        bottleneck_conv=create_conv_layer("bottleneckConv", 2, 2, source, embedding_dim),
        decoder_conv=create_conv_layer("decoderConv", 4, 2, source, embedding_dim),
        output_conv=create_conv_layer("outputConv", 2, 1, source),
    )
    logger.debug(f"Initialized tiny U-Net with {count_parameters(model)} parameters")
    return model
