"""
Configuration management for addonmgr.

Loads $ADDONMGR_HOME/config.yaml (default ~/.config/addonmgr/config.yaml).
Every key is optional; ADDONMGR_<KEY> environment variables override file
values. An optional ``env_file`` key is loaded with python-dotenv before
overrides are applied.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from addonmgr.errors import AddonManagerError

ENV_PREFIX = "ADDONMGR_"

# 3 days
DEFAULT_TTL_SECONDS = 259200


class ConfigError(AddonManagerError):
    """Configuration validation error."""
    pass


@dataclass(frozen=True)
class AddonManagerConfig:
    """
    Runtime configuration.

    Attributes:
        workflow_group: API group of the execution resource
        workflow_version: API version of the execution resource
        workflow_kind: Kind of the execution resource
        workflow_plural: Plural resource name used by the store
        addon_group: API group of the Addon resource (also the managed-by label)
        addon_version: API version of the Addon resource
        default_ttl_seconds: ttlSecondsAfterFinished applied when a template has none
        role_annotation: Pod template annotation that carries the workflow role
        request_timeout_seconds: Bound on each backing store call
        log_level: Logging level
        log_format: "structured" (JSON) or "pretty"
        log_file: Log file path, None to log to console only
    """
    workflow_group: str = "argoproj.io"
    workflow_version: str = "v1alpha1"
    workflow_kind: str = "Workflow"
    workflow_plural: str = "workflows"
    addon_group: str = "addonmgr.keikoproj.io"
    addon_version: str = "v1alpha1"
    default_ttl_seconds: int = DEFAULT_TTL_SECONDS
    role_annotation: str = "iam.amazonaws.com/role"
    request_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    log_format: str = "structured"
    log_file: Optional[str] = None

    @property
    def workflow_api_version(self) -> str:
        return f"{self.workflow_group}/{self.workflow_version}"

    @property
    def addon_api_version(self) -> str:
        return f"{self.addon_group}/{self.addon_version}"

    def validate(self) -> None:
        """Validate configuration values."""
        if self.default_ttl_seconds < 0:
            raise ConfigError("default_ttl_seconds must be >= 0")
        if self.request_timeout_seconds <= 0:
            raise ConfigError("request_timeout_seconds must be > 0")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL, got: {self.log_level}")
        if self.log_format not in ("structured", "pretty"):
            raise ConfigError(f"log_format must be 'structured' or 'pretty', got: {self.log_format}")
        for name in ("workflow_group", "workflow_version", "workflow_kind", "workflow_plural", "addon_group"):
            if not getattr(self, name):
                raise ConfigError(f"{name} is required")


def get_addonmgr_home() -> Path:
    """Config directory, $ADDONMGR_HOME or ~/.config/addonmgr."""
    home = os.environ.get("ADDONMGR_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/addonmgr").expanduser()


def _coerce(name: str, raw: Any, target: type) -> Any:
    if raw is None:
        return None
    try:
        if target is int:
            return int(raw)
        if target is float:
            return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name}: expected {target.__name__}, got {raw!r}") from e
    return str(raw)


def _field_types() -> dict[str, type]:
    types = {}
    for f in fields(AddonManagerConfig):
        default = f.default
        types[f.name] = type(default) if default is not None else str
    return types


def _load_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")
    return data


def load_config(config_path: Optional[Path] = None) -> AddonManagerConfig:
    """
    Load addonmgr configuration.

    Args:
        config_path: Explicit config file. Defaults to $ADDONMGR_HOME/config.yaml,
            which may be absent (defaults are used).

    Returns:
        Validated AddonManagerConfig

    Raises:
        ConfigError: If an explicit file is missing, YAML is invalid,
            keys are unknown or values fail validation
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_addonmgr_home() / "config.yaml"
    config_path = Path(config_path).expanduser()

    data: dict[str, Any] = {}
    if config_path.exists():
        data = _load_yaml(config_path)
    elif explicit:
        raise ConfigError(f"addonmgr config not found: {config_path}")

    env_file = data.pop("env_file", None)
    if env_file:
        load_dotenv(Path(env_file).expanduser())

    types = _field_types()
    unknown = sorted(set(data) - set(types))
    if unknown:
        raise ConfigError(f"Unknown config keys in {config_path}: {unknown}")

    values = {name: _coerce(name, value, types[name]) for name, value in data.items()}
    for name, target in types.items():
        env_value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value is not None:
            values[name] = _coerce(name, env_value, target)

    config = replace(AddonManagerConfig(), **values)
    config.validate()
    return config
