"""
MockTap Configuration

Explicit configuration passed to a MockHttpClientFactory. There are no
process-wide defaults: each factory owns its MockConfig, and each factory is
normally created per test.

Configuration can be built in code, from a dictionary, or from a YAML file:

    # mocktap.yaml
    default_base_address: https://unittest
    log_level: debug
    comparison:
      null_comparison: semantic
      ignore_case_properties: true
      max_differences: 10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .compare.options import ComparisonMode, ComparisonOptions
from .errors import ConfigurationError


@dataclass
class MockConfig:
    """Configuration for mock client factory behavior."""

    # Clients
    default_base_address: str = "https://unittest"

    # Logging
    log_level: str = "info"
    trace_request_comparisons: bool = False  # Log body differences at DEBUG

    # Request recording
    recording_enabled: bool = True
    recording_limit: int = 1000  # Maximum recorded requests per client (0 = unlimited)

    # Value comparison
    value_comparison: str = "semantic"  # semantic, exact
    null_comparison: str = "exact"  # semantic, exact
    max_differences: int = 0  # 0 = unlimited
    ignore_case_paths: bool = True
    ignore_case_properties: bool = False
    replace_arrays: bool = False

    # Serialization
    json_indent: Optional[int] = None

    # Resources (JSON bodies referenced by name)
    resource_dirs: List[str] = field(default_factory=list)

    def comparison_options(self) -> ComparisonOptions:
        """
        Build a fresh ComparisonOptions from this configuration.

        Returns:
            New ComparisonOptions instance (never shared between callers)
        """
        return ComparisonOptions(
            value_comparison=ComparisonMode.parse(self.value_comparison),
            null_comparison=ComparisonMode.parse(self.null_comparison),
            max_differences=self.max_differences or None,
            ignore_case_paths=self.ignore_case_paths,
            ignore_case_properties=self.ignore_case_properties,
            replace_arrays=self.replace_arrays,
        )

    def get_logger(self, name: str) -> logging.Logger:
        """Get a MockTap logger with the configured level applied."""
        logger = logging.getLogger(name)
        level = getattr(logging, self.log_level.upper(), None)
        if not isinstance(level, int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        logger.setLevel(level)
        return logger

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockConfig':
        """
        Create configuration from a dictionary.

        Keys of an optional nested ``comparison`` mapping are merged into the
        top level. Unknown keys are rejected.

        Args:
            data: Configuration values

        Returns:
            MockConfig instance

        Raises:
            ConfigurationError: If an unknown key is present
        """
        values = dict(data or {})
        values.update(values.pop('comparison', None) or {})

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        return cls(**values)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'MockConfig':
        """Load configuration from a YAML file."""
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})
