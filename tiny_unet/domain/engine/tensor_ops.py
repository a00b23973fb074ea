"""
Tensor primitives operating on `ActivationTensor`.

Every operator is a pure function: inputs are never modified and a new
tensor is always returned. Shapes are checked before computing and a
`ShapeMismatchError` is raised on disagreement.
"""
import numpy as np
from scipy.special import expit

from tiny_unet.domain.entities.layers import KERNEL_SIZE, ConvolutionLayer
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.errors import ShapeMismatchError


def conv2d(tensor: ActivationTensor, layer: ConvolutionLayer) -> ActivationTensor:
    """
    Same-size 3x3 convolution with stride 1 and zero padding.

    ``out[oc, h, w] = bias[oc] + sum_{ic, kh, kw} k[oc, ic, kh, kw] * in[ic, h+kh-1, w+kw-1]``
    where reads outside the input contribute 0.

    Parameters
    ----------
    tensor : ActivationTensor
        Input with `layer.in_channels` channels.
    layer : ConvolutionLayer
        Kernels and bias to apply.

    Returns
    -------
    ActivationTensor
        Tensor with `layer.out_channels` channels and the input's height/width.

    Raises
    ------
    ShapeMismatchError
        If the channel counts disagree.
    """
    if tensor.channels != layer.in_channels:
        raise ShapeMismatchError(
            f"{layer.name} expects {layer.in_channels} input channels, "
            f"got a tensor with {tensor.channels}"
        )

    height, width = tensor.height, tensor.width
    pad = KERNEL_SIZE // 2
    padded = np.pad(tensor.data, ((0, 0), (pad, pad), (pad, pad)))

    output = np.zeros((layer.out_channels, height, width))
    for kh in range(KERNEL_SIZE):
        for kw in range(KERNEL_SIZE):
            window = padded[:, kh:kh + height, kw:kw + width]
            output += np.einsum("oi,ihw->ohw", layer.kernels[:, :, kh, kw], window)
    output += layer.bias[:, np.newaxis, np.newaxis]

    return ActivationTensor.from_array(output)


def silu_values(values: np.ndarray) -> np.ndarray:
    """Elementwise ``x * sigmoid(x)`` on a raw array."""
    return values * expit(values)


def silu(tensor: ActivationTensor) -> ActivationTensor:
    """SiLU nonlinearity; shape-preserving and finite for every finite input."""
    return ActivationTensor.from_array(silu_values(tensor.data))


def avg_pool_2x(tensor: ActivationTensor) -> ActivationTensor:
    """
    Halve height and width by averaging each disjoint 2x2 block.

    Only exact 2x pooling is supported; odd sizes are rejected.

    Raises
    ------
    ShapeMismatchError
        If height or width is odd.
    """
    if tensor.height % 2 or tensor.width % 2:
        raise ShapeMismatchError(
            f"2x average pooling needs even height and width, "
            f"got {tensor.height}x{tensor.width}"
        )
    data = tensor.data
    pooled = (
        data[:, 0::2, 0::2]
        + data[:, 1::2, 0::2]
        + data[:, 0::2, 1::2]
        + data[:, 1::2, 1::2]
    ) / 4
    return ActivationTensor.from_array(pooled)


def nearest_upsample_2x(tensor: ActivationTensor) -> ActivationTensor:
    """Double height and width, replicating each pixel into a 2x2 block."""
    upsampled = np.repeat(np.repeat(tensor.data, 2, axis=1), 2, axis=2)
    return ActivationTensor.from_array(upsampled)


def concat_channels(first: ActivationTensor, second: ActivationTensor) -> ActivationTensor:
    """
    Stack two tensors along the channel axis, `first`'s channels first.

    The decoder's block projection relies on this order (upsampled channels,
    then skip channels).

    Raises
    ------
    ShapeMismatchError
        If the spatial sizes differ.
    """
    if (first.height, first.width) != (second.height, second.width):
        raise ShapeMismatchError(
            f"Cannot concatenate {first.height}x{first.width} with "
            f"{second.height}x{second.width} tensors"
        )
    return ActivationTensor.from_array(np.concatenate([first.data, second.data], axis=0))
