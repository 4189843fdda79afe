from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import yaml

from manusmith.errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".manusmith" / "config.yml"


@dataclass
class ValidationConfig:
    max_path_length: int = 260
    max_file_size_mb: int = 50
    blocked_extensions: List[str] = field(default_factory=lambda: ["exe", "bat", "sh", "cmd"])


@dataclass
class EngineConfig:
    default_profile: str = "None"
    rule_pack: Optional[str] = None  # path to a replacement rule pack; bundled pack when None
    validation: ValidationConfig = field(default_factory=ValidationConfig)


def _validation_from_dict(raw: Dict[str, Any]) -> ValidationConfig:
    d = ValidationConfig()
    return ValidationConfig(
        max_path_length=int(raw.get("max_path_length", d.max_path_length)),
        max_file_size_mb=int(raw.get("max_file_size_mb", d.max_file_size_mb)),
        blocked_extensions=[str(e).lower().lstrip(".") for e in raw.get("blocked_extensions", d.blocked_extensions)],
    )


def config_from_dict(raw: Dict[str, Any]) -> EngineConfig:
    try:
        return EngineConfig(
            default_profile=str(raw.get("default_profile", "None")),
            rule_pack=raw.get("rule_pack"),
            validation=_validation_from_dict(raw.get("validation") or {}),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidArgument(f"Invalid configuration value: {e}") from e


def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration from YAML.

    Reads the explicit path when given, otherwise ~/.manusmith/config.yml.
    A missing file yields the defaults; a malformed one is an error.
    """
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    if not p.is_file():
        if path:
            logger.warning("Config file %s not found, using defaults", p)
        return EngineConfig()
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidArgument(f"Malformed configuration file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidArgument(f"Configuration file {p} must contain a mapping")
    logger.info("Loaded configuration from %s", p)
    return config_from_dict(raw)
