"""
Inspect Forward Pass Use-Case.

This module provides a use-case that runs one forward pass through a tiny
U-Net, logs what every stage produced, and optionally cross-checks the trace
against an independent reference engine.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tiny_unet.domain.engine.accounting import count_parameters
from tiny_unet.domain.engine.forward import forward_pass, trace_differences
from tiny_unet.domain.entities.models import ForwardPassState, TinyUNet
from tiny_unet.domain.entities.tensor import ActivationTensor

logger = logging.getLogger(__name__)

ForwardEngine = Callable[[TinyUNet, ActivationTensor, float], ForwardPassState]


@dataclass
class InspectionResult:
    """Result of an inspected forward pass."""

    state: ForwardPassState
    parameter_count: int
    max_reference_difference: float | None


class InspectForwardPass:
    """
    Use-case for running and checking a single forward pass.

    Attributes
    ----------
    model : TinyUNet
        Model to run.
    noisy_input : ActivationTensor
        Input image.
    sigma : float
        Noise level.
    reference_engine : ForwardEngine | None
        Optional second implementation whose trace must agree with
        `forward_pass` within `tolerance`.
    tolerance : float
        Largest accepted absolute difference between the two traces.
    """

    def __init__(
        self,
        model: TinyUNet,
        noisy_input: ActivationTensor,
        sigma: float,
        reference_engine: Optional[ForwardEngine] = None,
        tolerance: float = 1e-9,
    ) -> None:
        self.model = model
        self.noisy_input = noisy_input
        self.sigma = sigma
        self.reference_engine = reference_engine
        self.tolerance = tolerance

    def run(self) -> InspectionResult:
        """
        Execute the forward pass and the optional cross-check.

        Returns
        -------
        InspectionResult
            The trace, the model's parameter count and, when a reference
            engine is configured, the largest difference between the traces.

        Raises
        ------
        RuntimeError
            If the reference trace differs by more than `tolerance`, or
            either trace holds a non-finite value.
        """
        parameter_count = count_parameters(self.model)
        logger.info(f"Model has {parameter_count} parameters.")

        state = forward_pass(self.model, self.noisy_input, self.sigma)
        logger.info(f"sigma={state.sigma:.4f} -> cnoise={state.cnoise:.4f}")
        for name, tensor in state.stages():
            logger.info(f"{name}: shape {tensor.shape}")

        max_difference = None
        if self.reference_engine is not None:
            reference = self.reference_engine(self.model, self.noisy_input, self.sigma)
            differences = trace_differences(state, reference)
            worst_stage = max(differences, key=differences.get)
            max_difference = differences[worst_stage]
            logger.info(
                f"Reference cross-check: max difference {max_difference:.3e} at {worst_stage}"
            )
            if not max_difference <= self.tolerance:
                error = RuntimeError(
                    f"Reference engine disagrees at {worst_stage}: "
                    f"{max_difference:.3e} > tolerance {self.tolerance:.3e}"
                )
                logger.error(str(error))
                raise error

        return InspectionResult(
            state=state,
            parameter_count=parameter_count,
            max_reference_difference=max_difference,
        )
