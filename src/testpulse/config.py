"""YAML threshold configuration loader and validator."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from testpulse.models import HealthThresholds


class ConfigError(ValueError):
    """Misconfigured thresholds. Fatal, unlike every storage problem."""


def load_thresholds(
    path: str | Path | None = None, **overrides: Optional[float]
) -> HealthThresholds:
    """Build validated thresholds from an optional YAML file plus overrides.

    Args:
        path: YAML file holding the threshold keys, either at top level or
            under a ``thresholds`` mapping.
        **overrides: Field values that win over the file. ``None`` values
            are ignored so unset CLI options can be passed straight through.

    Returns:
        A frozen HealthThresholds.

    Raises:
        ConfigError: If the file is missing, unparsable or holds invalid values.
    """
    values = {}
    source = "thresholds"
    if path is not None:
        path = Path(path)
        source = str(path)
        values = _read_yaml(path)

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return HealthThresholds.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"Invalid thresholds in {source}:\n{e}")


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Threshold config not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping in {path}, got {type(raw).__name__}")
    if "thresholds" in raw:
        raw = raw["thresholds"]
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected 'thresholds' to be a mapping in {path}")
    return dict(raw)
