"""Project configuration, read from ``[tool.pystitch]`` in pyproject.toml."""

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from pystitch.core.exceptions import ConfigError

PROJECT_MARKERS = ("pyproject.toml",)


@dataclass(frozen=True)
class StitchConfig:
    components_dir: Optional[Path] = None
    registry: Optional[str] = None
    parser: str = "xml"
    slot_tag: str = "slot"
    render_timeout: Optional[float] = None
    discard_policy: str = "drop"
    debug: bool = False

    def __post_init__(self) -> None:
        if self.parser not in ("xml", "html"):
            raise ConfigError(f"parser must be 'xml' or 'html', got '{self.parser}'")
        if self.discard_policy not in ("drop", "compose"):
            raise ConfigError(
                f"discard_policy must be 'drop' or 'compose', got '{self.discard_policy}'"
            )
        if self.render_timeout is not None and self.render_timeout <= 0:
            raise ConfigError("render_timeout must be positive")
        if not self.slot_tag:
            raise ConfigError("slot_tag must not be empty")

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "StitchConfig":
        """Load config from the project's pyproject.toml, defaults if none is found."""
        root = project_root or find_project_root(Path.cwd())
        if root is None:
            return cls()

        pyproject = root / "pyproject.toml"
        if not pyproject.exists():
            return cls()

        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid {pyproject}: {e}") from e

        table = data.get("tool", {}).get("pystitch", {})
        return cls.from_dict(table, base_dir=root)

    @classmethod
    def from_dict(cls, table: Dict[str, Any], base_dir: Optional[Path] = None) -> "StitchConfig":
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in table.items():
            name = key.replace("-", "_")
            if name not in known:
                raise ConfigError(f"Unknown [tool.pystitch] key '{key}'")
            values[name] = value

        if values.get("components_dir") is not None:
            components_dir = Path(values["components_dir"])
            if base_dir is not None and not components_dir.is_absolute():
                components_dir = base_dir / components_dir
            values["components_dir"] = components_dir

        if values.get("render_timeout") is not None:
            try:
                values["render_timeout"] = float(values["render_timeout"])
            except (TypeError, ValueError):
                raise ConfigError("render_timeout must be a number")

        return cls(**values)

    def override(self, **overrides: Any) -> "StitchConfig":
        """Return a copy with every non-None override applied (CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def find_project_root(start: Path) -> Optional[Path]:
    """Walk up from ``start`` to the first directory holding a project marker."""
    current = start.resolve()
    for directory in (current, *current.parents):
        if any((directory / marker).exists() for marker in PROJECT_MARKERS):
            return directory
    return None
