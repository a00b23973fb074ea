"""
Forward-pass orchestrator.

Runs the fixed encoder -> bottleneck -> decoder pipeline with one skip
connection and records every intermediate tensor.

Noise conditioning is added after each block's SiLU, not before the
convolution as most published diffusion U-Nets do. This ordering is kept
as-is.
"""
import logging

import numpy as np

from tiny_unet.domain.engine.conditioning import (
    apply_block_conditioning,
    compute_cnoise,
    run_time_embedding_mlp,
)
from tiny_unet.domain.engine.tensor_ops import (
    avg_pool_2x,
    concat_channels,
    conv2d,
    nearest_upsample_2x,
    silu,
)
from tiny_unet.domain.entities.layers import ConvolutionLayer
from tiny_unet.domain.entities.models import ForwardPassState, TinyUNet
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def _conditioned_block(tensor: ActivationTensor, layer: ConvolutionLayer,
                       embedding: np.ndarray) -> ActivationTensor:
    x = silu(conv2d(tensor, layer))
    if layer.projection is not None:
        x = apply_block_conditioning(x, embedding, layer.projection)
    return x


def forward_pass(model: TinyUNet, noisy_input: ActivationTensor, sigma: float) -> ForwardPassState:
    """
    Run one forward pass and record every intermediate tensor.

    Parameters
    ----------
    model : TinyUNet
        Model weights (never modified).
    noisy_input : ActivationTensor
        Single-channel input with even height and width.
    sigma : float
        Noise level; values <= 0 are clamped inside `compute_cnoise`.

    Returns
    -------
    ForwardPassState
        Complete trace; ``state.output`` is the predicted noise.

    Raises
    ------
    ShapeMismatchError
        If the input does not fit the model's first layer or has odd
        spatial dimensions.
    """
    cnoise = compute_cnoise(sigma)
    mlp_hidden, shared_embedding = run_time_embedding_mlp(cnoise, model.time_embed_mlp)

    after_input_conv = _conditioned_block(noisy_input, model.input_conv, shared_embedding)
    after_encoder = _conditioned_block(after_input_conv, model.encoder_conv, shared_embedding)
    after_downsample = avg_pool_2x(after_encoder)
    after_bottleneck = _conditioned_block(after_downsample, model.bottleneck_conv, shared_embedding)
    after_upsample = nearest_upsample_2x(after_bottleneck)
    # Upsampled channels first, skip channels appended
    after_skip_concat = concat_channels(after_upsample, after_encoder)
    after_decoder = _conditioned_block(after_skip_concat, model.decoder_conv, shared_embedding)
    output = conv2d(after_decoder, model.output_conv)

    logger.debug(f"Forward pass at sigma={sigma} (cnoise={cnoise:.4f}) produced {output.shape}")

    return ForwardPassState(
        noisy_input=noisy_input,
        sigma=sigma,
        cnoise=cnoise,
        mlp_hidden=mlp_hidden,
        shared_embedding=shared_embedding,
        after_input_conv=after_input_conv,
        after_encoder=after_encoder,
        after_downsample=after_downsample,
        after_bottleneck=after_bottleneck,
        after_upsample=after_upsample,
        after_skip_concat=after_skip_concat,
        after_decoder=after_decoder,
        output=output,
    )


def trace_differences(first: ForwardPassState, second: ForwardPassState) -> dict[str, float]:
    """
    Maximum absolute difference between two traces, per recorded value.

    Parameters
    ----------
    first, second : ForwardPassState
        Traces to compare (e.g. from two engines on the same model and input).

    Returns
    -------
    dict[str, float]
        Keys are ``mlp_hidden``, ``shared_embedding`` and every stage name.

    Raises
    ------
    ShapeMismatchError
        If a recorded value has different shapes in the two traces.
    """
    pairs = [
        ("mlp_hidden", first.mlp_hidden, second.mlp_hidden),
        ("shared_embedding", first.shared_embedding, second.shared_embedding),
    ]
    pairs += [
        (name, tensor.data, getattr(second, name).data) for name, tensor in first.stages()
    ]

    differences = {}
    for name, left, right in pairs:
        if left.shape != right.shape:
            raise ShapeMismatchError(
                f"{name}: cannot compare shapes {left.shape} and {right.shape}"
            )
        if not left.size:
            differences[name] = 0.0
            continue
        # A NaN on either side (or inf - inf) is a mismatch, never agreement.
        difference = np.abs(left - right)
        difference[np.isnan(difference)] = np.inf
        differences[name] = float(np.max(difference))
    return differences
