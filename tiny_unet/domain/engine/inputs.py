"""Demo inputs: single-channel 2x2 images."""
import numpy as np

from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.interfaces.random_source import UniformSource

INPUT_SHAPE = (1, 2, 2)


def create_sample_input() -> ActivationTensor:
    """Fixed gradient ``[[0.1, 0.4], [0.6, 0.9]]``."""
    return ActivationTensor.from_array([[[0.1, 0.4], [0.6, 0.9]]])


def create_random_input(source: UniformSource) -> ActivationTensor:
    """Input whose four pixels are uniform draws, filled row by row."""
    data = np.empty(INPUT_SHAPE)
    for index in np.ndindex(*INPUT_SHAPE):
        data[index] = source.uniform()
    return ActivationTensor.from_array(data)
