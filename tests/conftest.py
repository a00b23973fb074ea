"""Pytest configuration and shared fixtures."""
import pytest
from fixtures.models import identity_model as build_identity_model
from fixtures.models import zero_model as build_zero_model

from tiny_unet.domain.engine.initializer import create_tiny_unet
from tiny_unet.domain.engine.inputs import create_sample_input
from tiny_unet.infrastructure.random_source import NumpyUniformSource


@pytest.fixture
def seeded_model():
    """
    Provide a reference-configuration model built from a fixed seed.

    Returns:
        TinyUNet: Model initialized from NumpyUniformSource(1234).
    """
    return create_tiny_unet(NumpyUniformSource(1234))


@pytest.fixture
def sample_input():
    """
    Provide the fixed 1x2x2 gradient input [[0.1, 0.4], [0.6, 0.9]].

    Returns:
        ActivationTensor: The sample input.
    """
    return create_sample_input()


@pytest.fixture
def identity_model():
    """
    Provide a model whose convolutions pass channel 0 straight through.

    Returns:
        TinyUNet: Model with kernels[0, 0, 1, 1] = 1 in every layer and all other weights zero.
    """
    return build_identity_model()


@pytest.fixture
def zero_model():
    """
    Provide a model whose weights and biases are all zero.

    Returns:
        TinyUNet: The all-zero model.
    """
    return build_zero_model()
