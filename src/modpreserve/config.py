"""
Configuration file support for module preservation runs.

Supports YAML and JSON config files with keyword override. A config file
holds the run options of ``module_preservation``:

    n_permutations: 10000
    n_threads: 4
    null_hypothesis: overlap
    verbose: true
    seed: 42
"""

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from modpreserve.core.index_maps import NULL_HYPOTHESES

_PARSERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


@dataclass(frozen=True)
class PreservationConfig:
    """
    Run options for ``module_preservation``.

    Values are checked on construction; the analysis itself assumes them
    valid.
    """
    n_permutations: int = 10000
    n_threads: int = 1
    null_hypothesis: str = "overlap"
    verbose: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.n_permutations, int) or self.n_permutations < 1:
            raise ValueError(f"n_permutations must be a positive integer, got {self.n_permutations!r}")
        if not isinstance(self.n_threads, int) or self.n_threads < 1:
            raise ValueError(f"n_threads must be a positive integer, got {self.n_threads!r}")
        available = os.cpu_count() or 1
        if self.n_threads > available:
            raise ValueError(
                f"n_threads ({self.n_threads}) exceeds the number of available cores ({available})"
            )
        if self.null_hypothesis not in NULL_HYPOTHESES:
            raise ValueError(
                f"null_hypothesis must be one of {NULL_HYPOTHESES}, got {self.null_hypothesis!r}"
            )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PreservationConfig":
        """
        Build from a mapping, rejecting unknown keys.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**config)

    @classmethod
    def from_file(cls, config_path: Path) -> "PreservationConfig":
        """
        Read run options from a ``.yaml``/``.yml`` or ``.json`` file.

        An empty file gives the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: On an unsupported suffix, unparsable content, a
                non-mapping document, or invalid options.
        """
        config_path = Path(config_path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Preservation config not found: {config_path}")

        suffix = config_path.suffix.lower()
        if suffix not in _PARSERS:
            raise ValueError(
                f"Unsupported config format '{suffix}' for {config_path.name}; "
                f"expected one of {', '.join(sorted(_PARSERS))}"
            )

        text = config_path.read_text()
        try:
            options = _PARSERS[suffix](text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot parse {config_path.name}: {e}") from e

        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ValueError(
                f"{config_path.name} must hold a mapping of run options, "
                f"got {type(options).__name__}"
            )
        return cls.from_dict(options)

    def with_overrides(self, **overrides: Any) -> "PreservationConfig":
        """
        Return a copy with explicitly given values replaced.

        ``None`` overrides are ignored so unset keyword arguments keep the
        config value.
        """
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_preservation_config(config_path: Path, **overrides: Any) -> PreservationConfig:
    """
    Load a PreservationConfig from file, then apply keyword overrides.

    Examples:
        >>> cfg = load_preservation_config(Path("run.yaml"), n_threads=2)
        >>> result = module_preservation(disc, test, assignment, modules, **cfg.to_dict())
    """
    return PreservationConfig.from_file(config_path).with_overrides(**overrides)
