"""
ReplayGuard Scoped Config Context

Applies a test case's property overrides for the duration of the test case
and restores the previous properties afterwards.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .properties import PropertySet, load_overrides
from ..common.errors import StructuralError


logger = logging.getLogger("replayguard.config")

DEFAULT_OVERRIDES_NAME = "overrides.yaml"


def find_override_file(
    test_dir: Union[str, Path],
    root: Union[str, Path],
    name: str = DEFAULT_OVERRIDES_NAME
) -> Optional[Path]:
    """
    Find the nearest override file from ``test_dir`` up to ``root``.

    Both ends are inclusive. Returns None if no directory in between holds
    the file, or if ``test_dir`` is not below ``root``.
    """
    current = Path(test_dir).resolve()
    root = Path(root).resolve()

    if current != root and root not in current.parents:
        logger.warning(f"{current} is not inside {root}, ignoring overrides")
        return None

    while True:
        candidate = current / name
        if candidate.is_file():
            return candidate
        if current == root:
            return None
        current = current.parent


class ScopedConfigContext:
    """
    Context manager overlaying per-test-case overrides on a PropertySet.

    On enter the current values are snapshotted and the overrides found by
    find_override_file() are applied on top. On exit the snapshot is
    restored wholesale, whether the body succeeded or raised.

    Example:
        with ScopedConfigContext(properties, test_dir, regression_root):
            recorder.open_session(properties, upstream)
    """

    def __init__(
        self,
        properties: PropertySet,
        test_dir: Union[str, Path],
        root: Union[str, Path],
        overrides_name: str = DEFAULT_OVERRIDES_NAME
    ):
        self.properties = properties
        self.test_dir = Path(test_dir)
        self.root = Path(root)
        self.overrides_name = overrides_name
        self.override_file: Optional[Path] = None
        self.overrides: Dict[str, Any] = {}
        self._snapshot: Optional[Dict[str, Any]] = None

    def open(self) -> 'ScopedConfigContext':
        """
        Snapshot the properties and apply the overrides.

        Raises:
            StructuralError: If the override file cannot be parsed
        """
        if self._snapshot is not None:
            raise RuntimeError("Config context is already open")

        self.override_file = find_override_file(self.test_dir, self.root, self.overrides_name)
        if self.override_file is not None:
            try:
                self.overrides = load_overrides(self.override_file)
            except (OSError, ValueError) as e:
                raise StructuralError(f"Cannot load overrides {self.override_file}: {e}") from e
            logger.debug(f"Applying {len(self.overrides)} overrides from {self.override_file}")

        self._snapshot = self.properties.snapshot()
        self.properties.update(self.overrides)
        return self

    def close(self):
        """Restore the properties as they were before open()."""
        if self._snapshot is None:
            return
        self.properties.restore(self._snapshot)
        self._snapshot = None

    def __enter__(self) -> 'ScopedConfigContext':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
