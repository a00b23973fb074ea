"""
Sweep Noise Levels Use-Case.

Runs the forward pass of one model on one input across a grid of noise
levels, the way a viewer drags the noise slider, and collects the
predicted noise at each level.
"""
import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from tiny_unet.domain.engine.forward import forward_pass
from tiny_unet.domain.entities.models import TinyUNet
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.interfaces.sweep_tracker import SweepTracker

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Predicted noise at one noise level."""

    sigma: float
    cnoise: float
    output: np.ndarray


class SweepNoiseLevels:
    """
    Use-case for evaluating a model across noise levels.

    Attributes
    ----------
    model : TinyUNet
        Model to run.
    noisy_input : ActivationTensor
        Input shared by every step.
    sigmas : list[float]
        Noise levels, evaluated in order.
    tracker : SweepTracker
        Receives progress events.
    """

    def __init__(
        self,
        model: TinyUNet,
        noisy_input: ActivationTensor,
        sigmas: Iterable[float],
        tracker: SweepTracker,
    ) -> None:
        self.model = model
        self.noisy_input = noisy_input
        self.sigmas = list(sigmas)
        self.tracker = tracker

    def run(self) -> list[SweepResult]:
        """
        Run one forward pass per noise level.

        Returns
        -------
        list[SweepResult]
            One result per sigma, in the order given.
        """
        logger.info(f"Sweeping {len(self.sigmas)} noise levels...")
        results: list[SweepResult] = []

        self.tracker.on_sweep_start(total_steps=len(self.sigmas))
        try:
            for step, sigma in enumerate(self.sigmas):
                state = forward_pass(self.model, self.noisy_input, sigma)
                output = state.output.data
                results.append(SweepResult(sigma=sigma, cnoise=state.cnoise, output=output))
                self.tracker.on_step_end(step, sigma, float(np.linalg.norm(output)))
        finally:
            self.tracker.on_sweep_end()

        logger.info("Sweep completed.")
        return results
