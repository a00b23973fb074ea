"""
Sweep Tracker Interface.

This module defines the abstract interface for tracking the progress of a
noise-level sweep. Implementations can provide console output or stay silent.
"""
from abc import ABC, abstractmethod


class SweepTracker(ABC):
    """
    Abstract interface for tracking a noise-level sweep.

    The lifecycle follows:
    1. on_sweep_start() - called once at the beginning
    2. on_step_end() - called after each forward pass
    3. on_sweep_end() - called once at the end
    """

    @abstractmethod
    def on_sweep_start(self, total_steps: int) -> None:
        """
        Called when the sweep begins.

        Parameters
        ----------
        total_steps : int
            Number of noise levels that will be evaluated.
        """
        pass

    @abstractmethod
    def on_step_end(self, step: int, sigma: float, output_norm: float) -> None:
        """
        Called after each forward pass.

        Parameters
        ----------
        step : int
            Current step number (0-indexed).
        sigma : float
            Noise level evaluated at this step.
        output_norm : float
            Euclidean norm of the predicted noise.
        """
        pass

    @abstractmethod
    def on_sweep_end(self) -> None:
        """Called when the sweep completes."""
        pass
