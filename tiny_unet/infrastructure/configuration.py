import os
import tomllib
from dataclasses import dataclass

import numpy as np

INPUT_KINDS = ("sample", "random")


def _read_table(config_path: str, table: str) -> dict:
    """
    Read one table from a TOML file.

    Parameters
    ----------
    config_path : str
        Filesystem path to a TOML file.
    table : str
        Name of the table to extract.

    Returns
    -------
    dict
        The table's contents, or an empty dict if the table is absent.

    Raises
    ------
    FileNotFoundError
        If no file exists at `config_path`.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return data.get(table, {})


@dataclass
class ModelConfiguration:
    """Configuration for model construction."""

    hidden_dim: int = 4
    embedding_dim: int = 8
    seed: int | None = None  # None draws fresh weights on every run

    def __post_init__(self):
        if self.hidden_dim < 1 or self.embedding_dim < 1:
            raise ValueError(
                f"hidden_dim and embedding_dim must be positive, got "
                f"{self.hidden_dim} and {self.embedding_dim}"
            )

    @classmethod
    def load(cls, config_path: str) -> "ModelConfiguration":
        """
        Load model configuration from a TOML file.

        Parameters
        ----------
        config_path : str
            Filesystem path to a TOML file containing a "model" table.

        Returns
        -------
        ModelConfiguration
            Instance populated from the "model" table; missing keys use defaults.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        """
        return cls(**_read_table(config_path, "model"))


@dataclass
class InspectionConfiguration:
    """Configuration for a single inspected forward pass."""

    sigma: float = 0.5
    input: str = "sample"
    input_seed: int | None = None
    output: str = "output/trace.csv"
    cross_check: bool = True
    tolerance: float = 1e-9

    def __post_init__(self):
        if self.input not in INPUT_KINDS:
            raise ValueError(
                f"input must be one of {INPUT_KINDS}, got {self.input!r}"
            )
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")

    @classmethod
    def load(cls, config_path: str) -> "InspectionConfiguration":
        """
        Load inspection configuration from a TOML file.

        Parameters
        ----------
        config_path : str
            Filesystem path to a TOML file containing an "inspection" table.

        Returns
        -------
        InspectionConfiguration
            Instance populated from the "inspection" table.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        """
        return cls(**_read_table(config_path, "inspection"))


@dataclass
class SweepConfiguration:
    """Configuration for a sweep over noise levels."""

    enabled: bool = False
    sigma_min: float = 0.0
    sigma_max: float = 1.0
    steps: int = 101
    output: str = "output/sweep.csv"

    def __post_init__(self):
        if self.steps < 1:
            raise ValueError(f"steps must be at least 1, got {self.steps}")
        if self.sigma_max < self.sigma_min:
            raise ValueError(
                f"sigma_max ({self.sigma_max}) must not be below sigma_min ({self.sigma_min})"
            )

    def sigmas(self) -> list[float]:
        """Evenly spaced noise levels from sigma_min to sigma_max inclusive."""
        return [float(s) for s in np.linspace(self.sigma_min, self.sigma_max, self.steps)]

    @classmethod
    def load(cls, config_path: str) -> "SweepConfiguration":
        """
        Load sweep configuration from a TOML file.

        Parameters
        ----------
        config_path : str
            Filesystem path to a TOML file containing a "sweep" table.

        Returns
        -------
        SweepConfiguration
            Instance populated from the "sweep" table.

        Raises
        ------
        FileNotFoundError
            If no file exists at `config_path`.
        """
        return cls(**_read_table(config_path, "sweep"))
