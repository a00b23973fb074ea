"""
Noise-conditioning subsystem.

EDM-style conditioning: the noise level sigma is mapped to
``cnoise = 0.25 * ln(sigma)``, fed through a shared two-layer MLP, and the
resulting embedding is projected per block and added to every spatial
position of that block's output.
"""
import logging
import math

import numpy as np

from tiny_unet.domain.engine.tensor_ops import silu_values
from tiny_unet.domain.entities.layers import BlockProjection, LinearLayer, TimeEmbeddingMLP
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.errors import ShapeMismatchError

logger = logging.getLogger(__name__)

CNOISE_EPSILON = 1e-6


def compute_cnoise(sigma: float) -> float:
    """
    Map a noise level to the conditioning scalar ``0.25 * ln(sigma)``.

    Sigma is clamped to at least 1e-6, so zero and negative noise levels are
    accepted and map to ``0.25 * ln(1e-6)``.
    """
    return 0.25 * math.log(max(sigma, CNOISE_EPSILON))


def linear(vector, layer: LinearLayer) -> np.ndarray:
    """
    Apply ``bias + weights @ x``.

    Raises
    ------
    ShapeMismatchError
        If `vector` does not have `layer.input_dim` entries.
    """
    values = np.asarray(vector, dtype=np.float64)
    if values.shape != (layer.input_dim,):
        raise ShapeMismatchError(
            f"Linear layer expects a vector of {layer.input_dim} values, "
            f"got shape {values.shape}"
        )
    return layer.bias + layer.weights @ values


def run_time_embedding_mlp(cnoise: float, mlp: TimeEmbeddingMLP) -> tuple[np.ndarray, np.ndarray]:
    """
    Run the shared time MLP.

    Parameters
    ----------
    cnoise : float
        Conditioning scalar from `compute_cnoise`.
    mlp : TimeEmbeddingMLP
        Shared MLP weights.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(hidden, embedding)`` where ``hidden`` is the SiLU-activated hidden
        layer and ``embedding`` the (unactivated) output layer.
    """
    hidden = silu_values(linear([cnoise], mlp.hidden_layer))
    embedding = linear(hidden, mlp.output_layer)
    return hidden, embedding


def apply_block_conditioning(
    tensor: ActivationTensor,
    embedding: np.ndarray,
    projection: BlockProjection,
) -> ActivationTensor:
    """
    Add the block's projected embedding to every spatial position.

    ``out[c, h, w] = in[c, h, w] + (projection(embedding))[c]``

    Parameters
    ----------
    tensor : ActivationTensor
        Block output to condition.
    embedding : np.ndarray
        Shared embedding from `run_time_embedding_mlp`.
    projection : BlockProjection
        The block's projection layer.

    Returns
    -------
    ActivationTensor
        Conditioned tensor with the input's shape.

    Raises
    ------
    ShapeMismatchError
        If the projection produces more values than the tensor has channels.
    """
    conditioning = linear(embedding, projection)
    if conditioning.shape[0] > tensor.channels:
        raise ShapeMismatchError(
            f"Conditioning has {conditioning.shape[0]} values for a tensor with "
            f"{tensor.channels} channels"
        )
    if conditioning.shape[0] < tensor.channels:
        logger.warning(
            f"Conditioning has {conditioning.shape[0]} values for {tensor.channels} "
            f"channels; missing channels receive 0"
        )
        conditioning = np.pad(conditioning, (0, tensor.channels - conditioning.shape[0]))
    return ActivationTensor.from_array(tensor.data + conditioning[:, np.newaxis, np.newaxis])
