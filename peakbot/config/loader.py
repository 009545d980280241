"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

import structlog
import yaml

from ..errors import ConfigurationError
from .defaults import (
    DefaultConfig,
    IntervalParams,
    MarketParams,
    MoversParams,
    TradingParams,
    get_default_config,
)
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)

CONFIG_FILENAME = "trading.yaml"

_SECTIONS = {
    "trading": TradingParams,
    "market": MarketParams,
    "movers": MoversParams,
    "intervals": IntervalParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Union[str, Path]] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Load overrides from trading.yaml, empty when the file is absent."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        if not file_config:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"{config_file} must contain a mapping at the top level",
                context={"path": str(config_file)}
            )

        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Runtime overrides (highest priority)
        2. trading.yaml in the config directory
        3. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_file_overrides())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_config(self, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """Merge, validate and build the typed configuration."""
        merged = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(
                    f"{err.field}: {err.message} (got: {err.value})" for err in errors
                ),
                errors=errors
            )

        return build_config(merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_section(section_cls: type, values: dict[str, Any], section: str = "") -> Any:
    """Instantiate one parameter dataclass, ignoring unknown keys."""
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        logger.warning(
            "Ignoring unknown configuration keys",
            section=section or section_cls.__name__,
            keys=unknown
        )

    kwargs = {k: v for k, v in values.items() if k in known}
    if "static_tokens" in kwargs:
        kwargs["static_tokens"] = tuple(t.upper() for t in kwargs["static_tokens"])

    return section_cls(**kwargs)


def build_config(config: dict[str, Any]) -> DefaultConfig:
    """Build a DefaultConfig from a merged configuration dictionary."""
    unknown = sorted(set(config) - set(_SECTIONS))
    if unknown:
        logger.warning("Ignoring unknown configuration sections", sections=unknown)

    return DefaultConfig(**{
        name: build_section(section_cls, config.get(name, {}), name)
        for name, section_cls in _SECTIONS.items()
    })
