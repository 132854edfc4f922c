"""
ReplayGuard Test Case Locator

A regression test case is a directory directly containing a recording log.
Its identity is its path relative to the regression root.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union


DEFAULT_RECORDING_LOG_NAME = "recording.json"


@dataclass(frozen=True)
class RegressionTestCase:
    """One regression scenario."""

    name: str  # POSIX path relative to the regression root
    directory: Path

    @property
    def relative_path(self) -> Path:
        return Path(self.name)

    def __str__(self) -> str:
        return self.name


def find_test_cases(
    search_root: Union[str, Path],
    regression_root: Optional[Union[str, Path]] = None,
    recording_log_name: str = DEFAULT_RECORDING_LOG_NAME
) -> List[RegressionTestCase]:
    """
    Find test case directories below ``search_root``.

    Args:
        search_root: Directory to walk, the regression root or a subdirectory of it
        regression_root: Root test case names are relative to (defaults to search_root)
        recording_log_name: File name marking a test case directory

    Returns:
        Test cases sorted by name
    """
    search_root = Path(search_root).resolve()
    regression_root = Path(regression_root).resolve() if regression_root else search_root

    if not search_root.is_dir():
        raise FileNotFoundError(f"Regression directory not found: {search_root}")

    cases = []
    for log_file in search_root.rglob(recording_log_name):
        if not log_file.is_file():
            continue
        directory = log_file.parent
        name = directory.relative_to(regression_root).as_posix()
        cases.append(RegressionTestCase(name=name, directory=directory))

    return sorted(cases, key=lambda c: c.name)
