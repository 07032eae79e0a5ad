"""
Engine configuration, loaded from YAML.

Example grantgate.yaml:

    store_path: .grantgate/journal.jsonl
    signing_key_path: .grantgate/store.pem
    custody_address: grantgate-custody
    require_active_for_approval: false
    log_level: INFO

Relative paths resolve against the config file's directory.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from grantgate.core.exceptions import GrantGateError
from grantgate.engine.engine import DEFAULT_CUSTODY_ADDRESS

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(GrantGateError):
    """Raised when a configuration file is missing or malformed"""
    pass


@dataclass
class EngineConfig:
    store_path:                  Optional[Path] = None
    signing_key_path:            Optional[Path] = None
    custody_address:             str = DEFAULT_CUSTODY_ADDRESS
    require_active_for_approval: bool = False
    log_level:                   str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown configuration keys", {"keys": ",".join(unknown)})

        config = cls(**data)
        config.store_path = _resolve(config.store_path, base_dir)
        config.signing_key_path = _resolve(config.signing_key_path, base_dir)

        if not isinstance(config.require_active_for_approval, bool):
            raise ConfigError(
                "require_active_for_approval must be a boolean",
                {"value": config.require_active_for_approval},
            )
        if not isinstance(config.custody_address, str) or not config.custody_address:
            raise ConfigError("custody_address must be a non-empty string")
        config.log_level = str(config.log_level).upper()
        if config.log_level not in LOG_LEVELS:
            raise ConfigError(
                "log_level must be one of " + ", ".join(LOG_LEVELS),
                {"value": config.log_level},
            )
        return config

    @classmethod
    def from_yaml(cls, config_file: Path) -> "EngineConfig":
        """Load configuration from a YAML file."""
        config_file = Path(config_file)
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError("Config file not found", {"path": str(config_file)}) from None
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping", {"path": str(config_file)})
        return cls.from_dict(data, base_dir=config_file.parent)


def _resolve(path: Optional[Any], base_dir: Optional[Path]) -> Optional[Path]:
    if path is None:
        return None
    path = Path(path)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path
