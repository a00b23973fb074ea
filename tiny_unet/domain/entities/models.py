"""Tiny U-Net model aggregate and the forward-pass trace record."""
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from tiny_unet.domain.entities.layers import ConvolutionLayer, TimeEmbeddingMLP
from tiny_unet.domain.entities.tensor import ActivationTensor, readonly_array
from tiny_unet.domain.errors import ShapeMismatchError


@dataclass(frozen=True, eq=False)
class TinyUNet:
    """
    Immutable tiny U-Net with EDM-style noise conditioning.

    Architecture
    ------------
    - Input: 1 channel (2x2 in the reference configuration)
    - Channels: 1 -> 2 -> 2 -> 2 -> 1
    - One encoder block, one bottleneck at half resolution, one decoder block
    - Skip connection from encoder to decoder (decoder sees 2 + 2 channels)
    - Every block except the output convolution carries a block projection

    A "new weights" action builds a new instance; existing models are never
    edited, so they can be shared between concurrent forward passes.
    """

    time_embed_mlp: TimeEmbeddingMLP
    input_conv: ConvolutionLayer
    encoder_conv: ConvolutionLayer
    bottleneck_conv: ConvolutionLayer
    decoder_conv: ConvolutionLayer
    output_conv: ConvolutionLayer

    def __post_init__(self) -> None:
        """Validate channel wiring and projection dimensions."""
        expected_inputs = (
            (self.input_conv, 1),
            (self.encoder_conv, self.input_conv.out_channels),
            (self.bottleneck_conv, self.encoder_conv.out_channels),
            (
                self.decoder_conv,
                self.bottleneck_conv.out_channels + self.encoder_conv.out_channels,
            ),
            (self.output_conv, self.decoder_conv.out_channels),
        )
        for layer, in_channels in expected_inputs:
            if layer.in_channels != in_channels:
                raise ShapeMismatchError(
                    f"{layer.name} expects {layer.in_channels} input channels, "
                    f"pipeline provides {in_channels}"
                )

        if self.output_conv.projection is not None:
            raise ShapeMismatchError(
                f"{self.output_conv.name} must not carry a block projection"
            )

        embedding_dim = self.time_embed_mlp.embedding_dim
        for layer in self.conv_layers:
            if layer.projection is not None and layer.projection.embedding_dim != embedding_dim:
                raise ShapeMismatchError(
                    f"{layer.name} projection expects a {layer.projection.embedding_dim}-dim "
                    f"embedding, time MLP produces {embedding_dim}"
                )

    @property
    def conv_layers(self) -> tuple[ConvolutionLayer, ...]:
        """The five convolution layers in pipeline order."""
        return (
            self.input_conv,
            self.encoder_conv,
            self.bottleneck_conv,
            self.decoder_conv,
            self.output_conv,
        )


@dataclass(frozen=True, eq=False)
class ForwardPassState:
    """
    Every intermediate value produced by one forward pass.

    Attributes
    ----------
    noisy_input : ActivationTensor
        Input image, shape (1, 2, 2) in the reference configuration.
    sigma : float
        Noise level the pass was conditioned on.
    cnoise : float
        Conditioning scalar derived from sigma.
    mlp_hidden : np.ndarray
        Hidden activations of the time MLP (after SiLU).
    shared_embedding : np.ndarray
        Output of the time MLP, shared by all block projections.
    after_input_conv, after_encoder, after_downsample, after_bottleneck,
    after_upsample, after_skip_concat, after_decoder : ActivationTensor
        Tensor recorded after each pipeline stage.
    output : ActivationTensor
        Predicted noise.
    """

    noisy_input: ActivationTensor
    sigma: float
    cnoise: float
    mlp_hidden: np.ndarray
    shared_embedding: np.ndarray
    after_input_conv: ActivationTensor
    after_encoder: ActivationTensor
    after_downsample: ActivationTensor
    after_bottleneck: ActivationTensor
    after_upsample: ActivationTensor
    after_skip_concat: ActivationTensor
    after_decoder: ActivationTensor
    output: ActivationTensor

    STAGE_NAMES = (
        "noisy_input",
        "after_input_conv",
        "after_encoder",
        "after_downsample",
        "after_bottleneck",
        "after_upsample",
        "after_skip_concat",
        "after_decoder",
        "output",
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "mlp_hidden", readonly_array(self.mlp_hidden, ndim=1, name="mlp_hidden")
        )
        object.__setattr__(
            self,
            "shared_embedding",
            readonly_array(self.shared_embedding, ndim=1, name="shared_embedding"),
        )

    def stages(self) -> Iterator[tuple[str, ActivationTensor]]:
        """Yield (label, tensor) pairs in pipeline order."""
        for name in self.STAGE_NAMES:
            yield name, getattr(self, name)
