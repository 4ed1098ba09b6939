"""Configuration loading for SPONGE benchmark runs."""

import json
from pathlib import Path
from typing import Any, Dict, Union

from .models import BenchmarkConfig


def load_json_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a benchmark config from a JSON file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(
            f"Unsupported config format for '{config_path}'. Use a .json config file."
        )

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Invalid JSON in config '{config_path}' at line {exc.lineno}, "
            f"column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid config root in '{config_path}': expected JSON object, got {type(data).__name__}."
        )
    return data


def load_benchmark_config(path: Union[str, Path]) -> BenchmarkConfig:
    """Load and validate a BenchmarkConfig from JSON."""
    config = BenchmarkConfig.from_dict(load_json_config(path))
    config.validate()
    return config
