import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "shutterpress.yml"


class SettingsParseError(ValueError):
    """Raised when a theme settings file exists but is not a JSON object."""


class BuildOptions(BaseModel):
    """Options for a single site build.

    Unknown keys are accepted and forwarded to templates unchanged under
    ``gallery``.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(default="Photo Album")
    output: Path = Field(default=Path("site"))
    albums: Path = Field(
        default=Path("albums.yml"),
        description="YAML or JSON file describing the album tree.",
    )
    theme: str = Field(default="classic", description="Name of a bundled or installed theme.")
    theme_path: Path | None = Field(
        default=None,
        description="Explicit theme directory; takes precedence over 'theme'.",
    )
    theme_style: Path | None = Field(
        default=None,
        description="Optional stylesheet appended to the theme stylesheet.",
    )
    theme_settings: Path | None = Field(
        default=None,
        description="Optional JSON file exposed to templates as 'settings'.",
    )
    seo_location: str | None = Field(
        default=None,
        description="Public base URL; enables sitemap.xml and robots.txt when set.",
    )

    @field_validator("output", "albums", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("theme_path", "theme_style", "theme_settings", mode="before")
    def _ensure_optional_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)

    @field_validator("seo_location", mode="before")
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


def load_config(path: str | Path) -> BuildOptions:
    """Load build options and resolve relative paths based on the config location.

    ``path`` may point to a config file or to a directory holding
    ``shutterpress.yml``. A directory without one yields default options
    anchored to that directory.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    options = BuildOptions(**data)

    def _abs_required(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    def _abs_optional(value: Path | None) -> Path | None:
        if value is None:
            return None
        return _abs_required(value)

    options.output = _abs_required(options.output)
    options.albums = _abs_required(options.albums)
    options.theme_path = _abs_optional(options.theme_path)
    options.theme_style = _abs_optional(options.theme_style)
    options.theme_settings = _abs_optional(options.theme_settings)
    return options


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} does not define a mapping.")
    return data


def load_theme_settings(path: Path | None) -> dict[str, Any]:
    """Read the optional theme settings JSON file."""
    if path is None:
        return {}
    if not path.exists():
        logger.warning("Theme settings not found at %s; using defaults.", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SettingsParseError(f"Failed to parse JSON theme settings file: {path}") from exc
    if not isinstance(data, dict):
        raise SettingsParseError(f"Theme settings file {path} does not define an object root.")
    return data
