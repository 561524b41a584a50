"""
Settings for the count_chords command.

Defaults match the fetcher's output layout (./out/*.crd). A YAML file can
override any of them, and command line flags override the file:

    input_dir: songs/
    output: stats/chords.txt
    extensions: [.crd, .pro]
    format: text
    top: 25
    min_count: 2
    exclude: [C/G]
    workers: 4
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from .corpus import DEFAULT_EXTENSIONS, normalize_extensions
from .report import FORMATS

DEFAULT_INPUT_DIR = './out'
DEFAULT_OUTPUT = './chord_stats.txt'


@dataclass
class CountConfig:
    """Settings for one count_chords run."""
    input_dir: str = DEFAULT_INPUT_DIR
    output: str = DEFAULT_OUTPUT
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    format: str = 'text'
    top: int = 0  # 0 = every chord
    min_count: int = 1
    exclude: list[str] = field(default_factory=list)
    workers: int = 1

    def __post_init__(self):
        self.check_types()
        self.extensions = list(normalize_extensions(self.extensions))
        self.validate()

    def check_types(self):
        """Reject values of the wrong type, e.g. 'top: five' or 'output: ~'."""
        for name in ('input_dir', 'output', 'format'):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {value!r}")
        for name in ('top', 'min_count', 'workers'):
            value = getattr(self, name)
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in ('extensions', 'exclude'):
            value = getattr(self, name)
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"{name} must be a list of strings, got {value!r}")

    def validate(self):
        if self.format not in FORMATS:
            raise ValueError(f"Unknown format {self.format!r}; expected one of {', '.join(FORMATS)}")
        if not self.extensions:
            raise ValueError("At least one file extension is required")
        if self.top < 0:
            raise ValueError(f"top must be >= 0, got {self.top}")
        if self.min_count < 1:
            raise ValueError(f"min_count must be >= 1, got {self.min_count}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def to_yaml(self) -> str:
        """Serialize to YAML, leaving out settings that are at their default."""
        defaults = CountConfig()
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value != getattr(defaults, f.name):
                data[f.name] = value
        if not data:
            return ''
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> 'CountConfig':
        """Parse YAML text into a CountConfig."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Config must be a YAML mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'CountConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(str(key) for key in set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        values = dict(data)
        for key in ('extensions', 'exclude'):
            if key in values and isinstance(values[key], str):
                values[key] = [values[key]]
        for key in ('input_dir', 'output'):
            if key in values and values[key] is not None:
                values[key] = str(values[key])
        return cls(**values)

    def merged(self, **overrides) -> 'CountConfig':
        """Copy with every override that is not None applied."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if value is not None:
                data[key] = value
        return CountConfig.from_dict(data)


def load_config(path: Optional[Union[str, Path]]) -> CountConfig:
    """Load settings from a YAML file, or the defaults when path is None."""
    if path is None:
        return CountConfig()
    with open(path, 'r', encoding='utf-8') as f:
        return CountConfig.from_yaml(f.read())
