"""Optional user configuration.

Loads ``.gh-cr.toml`` from the working directory (walking up to the ``.git``
root), validates it with Pydantic, and falls back to defaults so zero-config
still works.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".gh-cr.toml"


class DisplayConfig(BaseModel):
    """How threads are drawn."""

    model_config = ConfigDict(extra="ignore")

    wrap_width: int = Field(default=80, ge=20, description="Column at which comment bodies wrap")
    mouse: bool = Field(default=True, description="Capture mouse wheel events for scrolling")


class EditorConfig(BaseModel):
    """Reply composition settings."""

    model_config = ConfigDict(extra="ignore")

    command: str = Field(default="", description="Editor command; overrides $EDITOR when non-empty")


class Config(BaseModel):
    """Top-level gh-cr configuration."""

    model_config = ConfigDict(extra="ignore")

    display: DisplayConfig = Field(default_factory=DisplayConfig, description="Display settings")
    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editor settings")


def _collect_unknown_keys(
    data: dict[str, Any],
    model_cls: type[BaseModel],
    prefix: str = "",
) -> list[str]:
    """Recursively find keys in *data* that don't match any field in *model_cls*.

    Returns dotted key paths like ``display.colour``.
    """
    known = set(model_cls.model_fields)
    unknown: list[str] = []

    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if key not in known:
            unknown.append(dotted)
            continue
        annotation = model_cls.model_fields[key].annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel) and isinstance(value, dict):
            unknown.extend(_collect_unknown_keys(value, annotation, prefix=f"{dotted}."))

    return unknown


def _find_config_file(start: Path) -> Path | None:
    """Walk up from *start* looking for ``.gh-cr.toml``, stopping at ``.git`` root."""
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        # Stop at filesystem root
        if current.parent == current:
            return None
        # Stop if we just checked a directory that contains .git
        if (current / ".git").exists():
            return None
        current = current.parent


def load_config(cwd: str | Path | None = None) -> tuple[Config, Path | None]:
    """Load configuration from ``.gh-cr.toml``.

    Returns:
        (config, config_path): the parsed config and the file path (or None
        if no config file was found).

    Raises ``ValueError`` on invalid TOML or validation errors so the tool
    refuses to start with a broken config.
    """
    start = Path(cwd) if cwd else Path.cwd()
    config_path = _find_config_file(start)

    if config_path is None:
        logger.info("No %s found, using defaults", CONFIG_FILENAME)
        return Config(), None

    logger.info("Loading config from %s", config_path)
    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {config_path}: {exc}"
        raise ValueError(msg) from exc

    try:
        config = Config.model_validate(data)
    except Exception as exc:
        msg = f"Invalid config in {config_path}: {exc}"
        raise ValueError(msg) from exc

    for key in _collect_unknown_keys(data, Config):
        logger.warning("Unknown config key '%s' in %s", key, config_path)

    return config, config_path


DEFAULT_CONFIG_TEMPLATE = """\
# .gh-cr.toml: configuration for gh-cr
# All settings are optional. Omitted values use sensible defaults.
# Place this file in your project root (next to .git/).

[display]
wrap_width = 80                   # Column at which comment bodies wrap
mouse = true                      # Scroll with the mouse wheel

[editor]
command = ""                      # e.g. "code --wait"; empty means $EDITOR, then vim
"""


def init_config(cwd: Path | None = None) -> Path:
    """Create a new ``.gh-cr.toml`` in the given directory.

    Raises ``SystemExit(1)`` if the file already exists.
    """
    target = (cwd or Path.cwd()) / CONFIG_FILENAME
    if target.exists():
        print(f"Error: {CONFIG_FILENAME} already exists in {target.parent}")  # noqa: T201
        raise SystemExit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    print(f"Created {target}")  # noqa: T201
    return target
