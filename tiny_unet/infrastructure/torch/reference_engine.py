"""
infrastructure.torch.reference_engine
=====================================

Independent re-implementation of the tiny U-Net forward pass on top of
``torch.nn.functional``.

The numpy engine in `tiny_unet.domain.engine` computes every primitive by
hand. This module runs the same pipeline with PyTorch's own operators
(``conv2d``, ``silu``, ``avg_pool2d``, ``interpolate``, ``linear``) in
float64, so the two traces can be compared stage by stage.

Notes
-----
``F.conv2d`` is a cross-correlation, which is exactly the convolution the
domain engine implements (no kernel flip). Tensors carry a leading batch
dimension of 1 inside this module and are converted back to
`ActivationTensor` on the way out.
"""
import numpy as np
import torch
import torch.nn.functional as F

from tiny_unet.domain.engine.conditioning import compute_cnoise
from tiny_unet.domain.entities.layers import ConvolutionLayer, LinearLayer
from tiny_unet.domain.entities.models import ForwardPassState, TinyUNet
from tiny_unet.domain.entities.tensor import ActivationTensor

DTYPE = torch.float64


def _as_torch(values) -> torch.Tensor:
    # Writable copy: entity arrays are read-only.
    return torch.tensor(np.array(values, dtype=np.float64), dtype=DTYPE)


def _to_activation(x: torch.Tensor) -> ActivationTensor:
    return ActivationTensor.from_array(x.squeeze(0).numpy())


def _linear(x: torch.Tensor, layer: LinearLayer) -> torch.Tensor:
    return F.linear(x, _as_torch(layer.weights), _as_torch(layer.bias))


def _block(x: torch.Tensor, layer: ConvolutionLayer, embedding: torch.Tensor) -> torch.Tensor:
    x = F.conv2d(x, _as_torch(layer.kernels), _as_torch(layer.bias), padding=1)
    x = F.silu(x)
    if layer.projection is not None:
        conditioning = _linear(embedding, layer.projection)
        x = x + conditioning.view(1, -1, 1, 1)
    return x


@torch.no_grad()
def torch_forward_pass(model: TinyUNet, noisy_input: ActivationTensor,
                       sigma: float) -> ForwardPassState:
    """
    Run the tiny U-Net forward pass with PyTorch operators.

    Parameters
    ----------
    model : TinyUNet
        Model weights.
    noisy_input : ActivationTensor
        Single-channel input with even height and width.
    sigma : float
        Noise level.

    Returns
    -------
    ForwardPassState
        Trace with the same layout as `forward_pass`.
    """
    cnoise = compute_cnoise(sigma)
    mlp = model.time_embed_mlp
    hidden = F.silu(_linear(_as_torch([cnoise]), mlp.hidden_layer))
    embedding = _linear(hidden, mlp.output_layer)

    x = _as_torch(noisy_input.data).unsqueeze(0)
    after_input_conv = _block(x, model.input_conv, embedding)
    after_encoder = _block(after_input_conv, model.encoder_conv, embedding)
    after_downsample = F.avg_pool2d(after_encoder, kernel_size=2)
    after_bottleneck = _block(after_downsample, model.bottleneck_conv, embedding)
    after_upsample = F.interpolate(after_bottleneck, scale_factor=2, mode="nearest")
    after_skip_concat = torch.cat([after_upsample, after_encoder], dim=1)
    after_decoder = _block(after_skip_concat, model.decoder_conv, embedding)
    output = F.conv2d(
        after_decoder,
        _as_torch(model.output_conv.kernels),
        _as_torch(model.output_conv.bias),
        padding=1,
    )

    return ForwardPassState(
        noisy_input=noisy_input,
        sigma=sigma,
        cnoise=cnoise,
        mlp_hidden=hidden.numpy(),
        shared_embedding=embedding.numpy(),
        after_input_conv=_to_activation(after_input_conv),
        after_encoder=_to_activation(after_encoder),
        after_downsample=_to_activation(after_downsample),
        after_bottleneck=_to_activation(after_bottleneck),
        after_upsample=_to_activation(after_upsample),
        after_skip_concat=_to_activation(after_skip_concat),
        after_decoder=_to_activation(after_decoder),
        output=_to_activation(output),
    )
