"""Configuration loader for dbfixture."""

import dataclasses
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dbfixture.errors import FixtureError
from dbfixture.models import FixtureConfig


class ConfigLoader:
    """Loads YAML configuration files for fixture defaults."""

    SUPPORTED_KEYS = {field.name for field in dataclasses.fields(FixtureConfig)}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise FixtureError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise FixtureError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise FixtureError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise FixtureError(f"Unknown configuration keys: {unknown_list}")

        return parsed

    def build_config(self, config_path: Optional[str]) -> FixtureConfig:
        values = self.load(config_path)
        try:
            return FixtureConfig(**values)
        except TypeError as exc:
            raise FixtureError(f"Invalid config file '{config_path}': {exc}") from exc
