"""
ReplayGuard Harness Settings

YAML-based harness configuration.

    regression_root: tests/regression
    baseline_root: target/regression-baseline
    mock_server:
      host: 127.0.0.1
      port: 8089
    properties:
      runner.timeout: 10
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..config.properties import PropertySet, flatten
from ..config.scoped import DEFAULT_OVERRIDES_NAME
from .locator import DEFAULT_RECORDING_LOG_NAME


DEFAULT_SETTINGS_FILE = "replayguard.yaml"


@dataclass
class HarnessSettings:
    """Everything the harness needs to locate, run and compare test cases."""

    regression_root: Path = Path("tests/regression")
    baseline_root: Path = Path("target/regression-baseline")

    # File names inside a test case directory
    recording_log_name: str = DEFAULT_RECORDING_LOG_NAME
    plan_name: str = "recorded.xml"
    plan_template_name: str = "recorded.xml.tpl"
    result_log_name: str = "test-run.jtl"
    result_log_template_name: str = "test-run.jtl.tpl"
    overrides_name: str = DEFAULT_OVERRIDES_NAME

    # Plans embed the mock server URL, so its port has to stay the same between runs
    mock_host: str = "127.0.0.1"
    mock_port: int = 8089
    client_timeout: int = 30

    # Base properties handed to the recorder and the run engine
    properties: Dict[str, Any] = field(default_factory=dict)

    log_level: str = "info"

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'HarnessSettings':
        """Load settings from YAML; relative paths resolve against the file's directory."""
        yaml_path = Path(yaml_path)
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {yaml_path} must contain a mapping")

        return cls.from_dict(data, base_dir=yaml_path.parent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> 'HarnessSettings':
        base_dir = Path(base_dir) if base_dir else Path.cwd()
        defaults = cls()
        mock = data.get('mock_server', {}) or {}
        files = data.get('files', {}) or {}

        def resolve(value, default: Path) -> Path:
            path = Path(value) if value else default
            return path if path.is_absolute() else base_dir / path

        return cls(
            regression_root=resolve(data.get('regression_root'), defaults.regression_root),
            baseline_root=resolve(data.get('baseline_root'), defaults.baseline_root),
            recording_log_name=files.get('recording_log', defaults.recording_log_name),
            plan_name=files.get('plan', defaults.plan_name),
            plan_template_name=files.get('plan_template', defaults.plan_template_name),
            result_log_name=files.get('result_log', defaults.result_log_name),
            result_log_template_name=files.get('result_log_template', defaults.result_log_template_name),
            overrides_name=files.get('overrides', defaults.overrides_name),
            mock_host=mock.get('host', defaults.mock_host),
            mock_port=int(mock.get('port', defaults.mock_port)),
            client_timeout=int(data.get('client_timeout', defaults.client_timeout)),
            properties=flatten(data.get('properties', {}) or {}),
            log_level=data.get('log_level', defaults.log_level)
        )

    def create_properties(self) -> PropertySet:
        """Fresh property set holding the base properties."""
        return PropertySet(self.properties)
