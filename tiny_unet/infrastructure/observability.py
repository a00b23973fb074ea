"""
Observability module for noise-level sweeps.

This module provides SweepTracker implementations:
- ConsoleTracker: tqdm progress bar with live sigma / output norm
- SilentTracker: no output, for tests and batch use
"""
from tqdm import tqdm

from tiny_unet.domain.interfaces.sweep_tracker import SweepTracker


class ConsoleTracker(SweepTracker):
    """
    Sweep tracker with a tqdm progress bar.

    Attributes
    ----------
    description : str
        Label shown in front of the progress bar.
    """

    def __init__(self, description: str = "Sweeping sigma") -> None:
        self.description = description
        self._pbar: tqdm | None = None

    def on_sweep_start(self, total_steps: int) -> None:
        """Open the progress bar."""
        self._pbar = tqdm(
            total=total_steps,
            desc=self.description,
            unit="sigma",
            leave=True,
        )

    def on_step_end(self, step: int, sigma: float, output_norm: float) -> None:
        """Advance the bar and show the latest noise level and output norm."""
        if self._pbar is not None:
            self._pbar.set_postfix({"sigma": f"{sigma:.3f}", "|output|": f"{output_norm:.4f}"})
            self._pbar.update(1)

    def on_sweep_end(self) -> None:
        """Close the progress bar."""
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


class SilentTracker(SweepTracker):
    """Tracker that ignores every event."""

    def on_sweep_start(self, total_steps: int) -> None:
        pass

    def on_step_end(self, step: int, sigma: float, output_norm: float) -> None:
        pass

    def on_sweep_end(self) -> None:
        pass
