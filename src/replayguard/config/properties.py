"""
ReplayGuard Property Sets

Explicit configuration values handed to the recorder and the run engine.
A PropertySet replaces process-wide mutable properties: whoever owns it can
snapshot, overlay and restore it.
"""

from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml


class PropertySet(MutableMapping):
    """
    Mapping of property name to value.

    Example:
        props = PropertySet({'runner.timeout': 30})
        saved = props.snapshot()
        props.update({'runner.timeout': 5})
        props.restore(saved)
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any):
        self._values[key] = value

    def __delitem__(self, key: str):
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"PropertySet({self._values!r})"

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current values."""
        return dict(self._values)

    def restore(self, snapshot: Dict[str, Any]):
        """Replace all values with a snapshot (keys added since are dropped)."""
        self._values = dict(snapshot)

    def get_int(self, key: str, default: int) -> int:
        value = self._values.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Property {key} must be an integer, got {value!r}")

    def get_list(self, key: str, default: Optional[List[str]] = None) -> List[str]:
        """Read a comma separated (or YAML list) property."""
        value = self._values.get(key)
        if value is None:
            return list(default or [])
        if isinstance(value, (list, tuple)):
            return [str(v).strip() for v in value if str(v).strip()]
        return [part.strip() for part in str(value).split(',') if part.strip()]


def flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested mappings into dotted keys: {'a': {'b': 1}} -> {'a.b': 1}."""
    flat = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def load_overrides(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load an override file.

    The file is a YAML mapping; nested mappings become dotted property names.

    Raises:
        ValueError: If the file is not a YAML mapping
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Override file {path} must contain a mapping, got {type(data).__name__}")
    return flatten(data)
