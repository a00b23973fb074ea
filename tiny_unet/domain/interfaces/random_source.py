"""
Random Source Interface.

This module defines the abstract source of uniform draws consumed by the
parameter initializer. Passing a source explicitly keeps model construction
reproducible and free of hidden global state.
"""
from abc import ABC, abstractmethod


class UniformSource(ABC):
    """
    Abstract interface for a stream of uniform random numbers.

    Implementations must return draws in the open interval (0, 1): the
    Box-Muller transform takes the logarithm of the first draw, so an exact
    zero is not allowed, and neither endpoint is a uniform(0, 1) sample.
    """

    @abstractmethod
    def uniform(self) -> float:
        """
        Draw the next uniform number.

        Returns
        -------
        float
            A value in (0, 1).
        """
        pass
