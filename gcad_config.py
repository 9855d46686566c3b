"""
GCAD Config Module - Compiler configuration file support.

A configuration is a YAML mapping, for example:

    builtin_materials: true
    material_files:
      - shop_materials.gcad
    log_level: INFO
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from gcad_errors import ConfigError
from gcad_utils import PathLike

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CompilerConfig:
    """Settings for one compiler invocation."""

    def __init__(
        self,
        builtin_materials: bool = True,
        material_files: Optional[List[str]] = None,
        log_level: str = "WARNING",
        log_format: str = DEFAULT_LOG_FORMAT,
    ):
        self.builtin_materials = builtin_materials
        self.material_files = list(material_files or [])
        self.log_level = log_level
        self.log_format = log_format

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[PathLike] = None) -> "CompilerConfig":
        """
        Build a configuration from a parsed mapping.

        Args:
            data: Mapping loaded from YAML
            base_dir: Directory relative material files are resolved against

        Returns:
            Validated configuration

        Raises:
            ConfigError: For unknown keys or invalid values
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        unknown = set(data) - {"builtin_materials", "material_files", "log_level", "log_format"}
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        builtin_materials = data.get("builtin_materials", True)
        if not isinstance(builtin_materials, bool):
            raise ConfigError("builtin_materials must be true or false")

        material_files = data.get("material_files") or []
        if not isinstance(material_files, list) or not all(isinstance(f, str) for f in material_files):
            raise ConfigError("material_files must be a list of paths")
        if base_dir is not None:
            material_files = [
                f if os.path.isabs(f) else str(Path(base_dir, f)) for f in material_files
            ]

        log_level = str(data.get("log_level", "WARNING")).upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        log_format = data.get("log_format", DEFAULT_LOG_FORMAT)
        if not isinstance(log_format, str):
            raise ConfigError("log_format must be a string")

        return cls(builtin_materials, material_files, log_level, log_format)


def load_config(filename: PathLike) -> CompilerConfig:
    """
    Load a YAML configuration file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    yaml = YAML(typ="safe")
    try:
        with open(filename, "r", encoding="utf-8") as file:
            data = yaml.load(file)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {filename}")
    except (OSError, YAMLError) as e:
        raise ConfigError(f"Cannot read configuration {filename}: {e}")

    return CompilerConfig.from_dict(data or {}, base_dir=Path(filename).parent)
