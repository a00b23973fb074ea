"""Cross-check of the numpy engine against the torch reference engine."""
import numpy as np
import pytest
import torch

from tiny_unet.domain.engine.forward import forward_pass, trace_differences
from tiny_unet.domain.engine.initializer import create_tiny_unet
from tiny_unet.domain.engine.inputs import create_random_input
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.infrastructure.random_source import NumpyUniformSource
from tiny_unet.infrastructure.torch.reference_engine import torch_forward_pass


@pytest.mark.parametrize("sigma", [0.0, 0.05, 0.5, 1.0, 20.0])
def test_engines_agree_on_every_stage(seeded_model, sample_input, sigma):
    differences = trace_differences(
        forward_pass(seeded_model, sample_input, sigma),
        torch_forward_pass(seeded_model, sample_input, sigma),
    )
    assert max(differences.values()) < 1e-12


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_engines_agree_on_random_inputs(seed):
    model = create_tiny_unet(NumpyUniformSource(seed))
    noisy_input = create_random_input(NumpyUniformSource(seed + 100))

    differences = trace_differences(
        forward_pass(model, noisy_input, 0.3),
        torch_forward_pass(model, noisy_input, 0.3),
    )
    assert max(differences.values()) < 1e-12


def test_larger_input(seeded_model):
    noisy_input = ActivationTensor.from_array(np.linspace(-1.0, 1.0, 24).reshape(1, 4, 6))

    differences = trace_differences(
        forward_pass(seeded_model, noisy_input, 0.7),
        torch_forward_pass(seeded_model, noisy_input, 0.7),
    )
    assert max(differences.values()) < 1e-12


def test_reference_returns_numpy_and_restores_grad_mode(seeded_model, sample_input):
    state = torch_forward_pass(seeded_model, sample_input, 0.5)
    assert isinstance(state.output.data, np.ndarray)
    assert torch.is_grad_enabled()
