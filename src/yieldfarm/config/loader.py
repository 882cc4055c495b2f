"""Configuration loader from YAML."""

from pathlib import Path
from typing import Optional

import yaml

from .schema import Config

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(yaml_path: Optional[str] = None) -> Config:
    """
    Load protocol configuration from a YAML file.

    Args:
        yaml_path: Path to YAML file (defaults to the packaged defaults.yaml)

    Returns:
        Validated Config
    """
    path = Path(yaml_path) if yaml_path is not None else DEFAULTS_PATH
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return Config.from_dict(data)
