import argparse
import csv
import logging
import os

from tiny_unet.domain.engine.accounting import parameter_breakdown
from tiny_unet.domain.engine.initializer import create_tiny_unet
from tiny_unet.domain.engine.inputs import create_random_input, create_sample_input
from tiny_unet.domain.entities.models import ForwardPassState
from tiny_unet.domain.entities.tensor import ActivationTensor
from tiny_unet.domain.use_cases.inspect_forward_pass import InspectForwardPass
from tiny_unet.domain.use_cases.sweep_noise_levels import SweepNoiseLevels, SweepResult
from tiny_unet.infrastructure.configuration import (
    InspectionConfiguration,
    ModelConfiguration,
    SweepConfiguration,
)
from tiny_unet.infrastructure.logging import setup_logging
from tiny_unet.infrastructure.observability import ConsoleTracker
from tiny_unet.infrastructure.random_source import NumpyUniformSource

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Run and inspect a tiny diffusion U-Net forward pass."
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        default="configuration.toml",
        help="Path to configuration TOML file (default: configuration.toml)",
    )
    parser.add_argument(
        "--sweep",
        action="store_true",
        help="Also sweep the noise level range from the [sweep] table",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def build_input(config: InspectionConfiguration) -> ActivationTensor:
    """
    Create the input image described by the inspection configuration.

    Parameters
    ----------
    config : InspectionConfiguration
        Uses `input` ("sample" or "random") and `input_seed`.

    Returns
    -------
    ActivationTensor
        A (1, 2, 2) input.
    """
    if config.input == "random":
        return create_random_input(NumpyUniformSource(config.input_seed))
    return create_sample_input()


def _ensure_parent_dir(output_path: str) -> None:
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)


def save_trace_to_csv(state: ForwardPassState, output_path: str) -> None:
    """
    Save every recorded tensor of a forward pass to a CSV file.

    Each row holds one value: ``stage, channel, row, col, value``.

    Parameters
    ----------
    state : ForwardPassState
        Trace to save.
    output_path : str
        Path to the output CSV file.
    """
    _ensure_parent_dir(output_path)

    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["stage", "channel", "row", "col", "value"])
        writer.writeheader()
        for stage, tensor in state.stages():
            for channel in range(tensor.channels):
                for row in range(tensor.height):
                    for col in range(tensor.width):
                        writer.writerow({
                            "stage": stage,
                            "channel": channel,
                            "row": row,
                            "col": col,
                            "value": f"{tensor.data[channel, row, col]:.10f}",
                        })

    logger.info(f"Trace saved to {output_path}")


def save_sweep_to_csv(results: list[SweepResult], output_path: str) -> None:
    """
    Save sweep results to a CSV file.

    Columns are ``sigma``, ``cnoise`` and one ``output_<row>_<col>`` column
    per pixel of the (single-channel) predicted noise.

    Parameters
    ----------
    results : list[SweepResult]
        Results in sweep order.
    output_path : str
        Path to the output CSV file.
    """
    _ensure_parent_dir(output_path)

    pixel_columns = []
    if results:
        _, height, width = results[0].output.shape
        pixel_columns = [f"output_{row}_{col}" for row in range(height) for col in range(width)]

    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["sigma", "cnoise", *pixel_columns])
        writer.writeheader()
        for result in results:
            row = {"sigma": f"{result.sigma:.6f}", "cnoise": f"{result.cnoise:.6f}"}
            row.update({
                column: f"{value:.10f}"
                for column, value in zip(pixel_columns, result.output[0].ravel())
            })
            writer.writerow(row)

    logger.info(f"Sweep results saved to {output_path}")


def main(config_path: str = None, sweep: bool = False, log_level: str = "INFO"):
    # 1. Setup Logging
    setup_logging(log_level)

    # 2. Load Configuration
    if config_path is None:
        config_path = "configuration.toml"
    model_config = ModelConfiguration.load(config_path)
    inspection_config = InspectionConfiguration.load(config_path)
    sweep_config = SweepConfiguration.load(config_path)

    # 3. Build model and input (outer layer responsibility)
    model = create_tiny_unet(
        NumpyUniformSource(model_config.seed),
        hidden_dim=model_config.hidden_dim,
        embedding_dim=model_config.embedding_dim,
    )
    for component, count in parameter_breakdown(model).items():
        logger.debug(f"{component}: {count} parameters")
    noisy_input = build_input(inspection_config)

    reference_engine = None
    if inspection_config.cross_check:
        # Imported lazily so torch is only loaded when the cross-check runs
        from tiny_unet.infrastructure.torch.reference_engine import torch_forward_pass
        reference_engine = torch_forward_pass

    # 4. Run the inspected forward pass
    inspection = InspectForwardPass(
        model=model,
        noisy_input=noisy_input,
        sigma=inspection_config.sigma,
        reference_engine=reference_engine,
        tolerance=inspection_config.tolerance,
    )
    result = inspection.run()
    save_trace_to_csv(result.state, inspection_config.output)

    # 5. Optionally sweep the noise level
    if sweep or sweep_config.enabled:
        sweep_results = SweepNoiseLevels(
            model=model,
            noisy_input=noisy_input,
            sigmas=sweep_config.sigmas(),
            tracker=ConsoleTracker(),
        ).run()
        save_sweep_to_csv(sweep_results, sweep_config.output)

    return result


if __name__ == "__main__":
    args = parse_args()
    main(config_path=args.config, sweep=args.sweep, log_level=args.log_level)
