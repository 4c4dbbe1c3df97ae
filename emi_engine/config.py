"""Configuration management for emi-engine."""

from dataclasses import dataclass, field
from decimal import (
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
)
from pathlib import Path
from typing import Any

from emi_engine.exceptions import ConfigurationError

ROUNDING_MODES = {
    "HALF_EVEN": ROUND_HALF_EVEN,
    "HALF_UP": ROUND_HALF_UP,
    "HALF_DOWN": ROUND_HALF_DOWN,
    "UP": ROUND_UP,
    "DOWN": ROUND_DOWN,
    "CEILING": ROUND_CEILING,
    "FLOOR": ROUND_FLOOR,
}


@dataclass
class NumericConfig:
    """Decimal arithmetic settings applied to every schedule computation."""

    precision: int = 12
    rounding: str = "HALF_EVEN"
    decimal_places: int = 2
    installment_amount_in_multiples_of: int | None = None

    def __post_init__(self) -> None:
        if self.precision < 1:
            raise ConfigurationError(f"Precision must be positive, got {self.precision}")
        if self.decimal_places < 0 or self.decimal_places >= self.precision:
            raise ConfigurationError(
                f"Decimal places must be within [0, {self.precision}), got {self.decimal_places}"
            )
        if self.rounding.upper() not in ROUNDING_MODES:
            raise ConfigurationError(
                f"Unknown rounding mode {self.rounding!r}, expected one of {sorted(ROUNDING_MODES)}"
            )
        if self.installment_amount_in_multiples_of is not None and self.installment_amount_in_multiples_of < 1:
            raise ConfigurationError(
                "Installment multiples must be a positive integer, "
                f"got {self.installment_amount_in_multiples_of}"
            )

    @property
    def rounding_mode(self) -> str:
        """Rounding constant understood by :mod:`decimal`."""
        return ROUNDING_MODES[self.rounding.upper()]


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class EngineConfig:
    """Main configuration for emi-engine."""

    numeric: NumericConfig = field(default_factory=NumericConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"

    def to_dict(self) -> dict[str, Any]:
        """Flatten to a plain dict for logging."""
        return {
            "precision": self.numeric.precision,
            "rounding": self.numeric.rounding,
            "decimal_places": self.numeric.decimal_places,
            "installment_amount_in_multiples_of": self.numeric.installment_amount_in_multiples_of,
            "json_output_dir": str(self.output.json_output_dir),
            "pretty_json": self.output.pretty_json,
            "seed": self.seed,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        try:
            multiples = os.getenv("EMI_INSTALLMENT_MULTIPLES_OF")
            numeric = NumericConfig(
                precision=int(os.getenv("EMI_PRECISION", "12")),
                rounding=os.getenv("EMI_ROUNDING", "HALF_EVEN"),
                decimal_places=int(os.getenv("EMI_DECIMAL_PLACES", "2")),
                installment_amount_in_multiples_of=int(multiples) if multiples else None,
            )
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment setting: {e}") from e

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        log_format = os.getenv("LOG_FORMAT", "standard")
        if log_format not in ("standard", "json"):
            raise ConfigurationError(f"LOG_FORMAT must be 'standard' or 'json', got {log_format!r}")

        return cls(
            numeric=numeric,
            output=output,
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=log_format,
        )
