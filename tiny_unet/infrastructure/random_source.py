"""NumPy-backed uniform source for the parameter initializer."""
import numpy as np

from tiny_unet.domain.interfaces.random_source import UniformSource


class NumpyUniformSource(UniformSource):
    """
    Uniform draws from a `numpy.random.Generator`.

    `Generator.random` samples [0, 1); an exact zero is redrawn so every
    value lies in the open interval (0, 1).

    Parameters
    ----------
    seed : int | None, optional
        Seed for `numpy.random.default_rng`. None draws fresh OS entropy.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        value = float(self._rng.random())
        while value == 0.0:
            value = float(self._rng.random())
        return value
