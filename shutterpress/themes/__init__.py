"""Theme resolution and asset/page rendering for Shutterpress."""

from __future__ import annotations

import asyncio
import importlib.util
import json
import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..helpers import install_filters, page_file

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "theme.json"
BUNDLED_THEMES_ROOT = Path(__file__).resolve().parent
THEME_PACKAGE_PREFIX = "shutterpress_theme_"
PUBLIC_DIRNAME = "public"


class ThemeError(RuntimeError):
    """Raised when a theme cannot be loaded or used."""


class ThemeNotFoundError(ThemeError):
    """Raised when no installed or bundled theme matches the requested name."""


class AssetPreparationError(ThemeError):
    """Raised when theme stylesheets or public files cannot be staged."""


class RenderError(ThemeError):
    """Raised when a single page fails to render or be written."""


class ThemeManifest(BaseModel):
    """Structured representation of the optional theme.json manifest."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="Unnamed Theme")
    version: str | None = Field(default=None)
    template: str = Field(default="album.html")
    stylesheet: str = Field(default="theme.css")
    public_dir: str = Field(default=PUBLIC_DIRNAME)

    def to_template_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


def resolve_theme_path(theme_name: str) -> Path:
    """Find the directory of a theme by name.

    Installed ``shutterpress_theme_<name>`` packages win over the themes
    bundled with Shutterpress.
    """
    normalized = (theme_name or "").strip().lower().replace("-", "_")
    if not normalized.isidentifier():
        raise ThemeNotFoundError(f"Could not find a theme called '{theme_name}'.")

    spec = importlib.util.find_spec(f"{THEME_PACKAGE_PREFIX}{normalized}")
    if spec is not None and spec.submodule_search_locations:
        return Path(list(spec.submodule_search_locations)[0])

    bundled = BUNDLED_THEMES_ROOT / normalized
    if (bundled / MANIFEST_FILENAME).exists():
        return bundled
    raise ThemeNotFoundError(f"Could not find a built-in theme called '{theme_name}'.")


def available_themes() -> list[str]:
    return sorted(
        path.name for path in BUNDLED_THEMES_ROOT.iterdir() if (path / MANIFEST_FILENAME).is_file()
    )


class Theme:
    """Stage the assets of one theme layer and render album pages with it."""

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        *,
        stylesheet_name: str,
        custom_styles_path: Path | None = None,
        fallback_dirs: Iterable[Path] = (),
    ) -> None:
        self._source_dir = Path(source_dir)
        self._output_dir = Path(output_dir)
        self._stylesheet_name = stylesheet_name
        self._custom_styles_path = custom_styles_path
        self._fallback_dirs = [Path(path) for path in fallback_dirs]
        self._manifest: ThemeManifest | None = None
        self._environment: Environment | None = None

    @property
    def source_dir(self) -> Path:
        return self._source_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def manifest(self) -> ThemeManifest:
        if self._manifest is None:
            self._manifest = self._load_manifest()
        return self._manifest

    @property
    def environment(self) -> Environment:
        if self._environment is None:
            search_paths = [self._source_dir, *self._fallback_dirs]
            environment = Environment(
                loader=FileSystemLoader([str(path) for path in search_paths]),
                autoescape=select_autoescape(["html", "xml"]),
                trim_blocks=True,
                lstrip_blocks=True,
            )
            install_filters(environment)
            environment.globals["theme"] = self.manifest.to_template_dict()
            self._environment = environment
        return self._environment

    async def prepare(self) -> None:
        """Write the layer stylesheet and copy its public files."""
        try:
            await asyncio.to_thread(self._prepare_sync)
        except AssetPreparationError:
            raise
        except (OSError, UnicodeDecodeError, ThemeError) as exc:
            raise AssetPreparationError(
                f"Failed to prepare assets from {self._source_dir}: {exc}"
            ) from exc

    async def render(self, page_path: str, context: Mapping[str, Any]) -> Path:
        """Render one album page and return the written file."""
        return await asyncio.to_thread(self._render_sync, page_path, context)

    def page_destination(self, page_path: str) -> Path:
        relative = PurePosixPath(page_file(page_path))
        if relative.is_absolute() or ".." in relative.parts:
            raise RenderError(f"Page path '{page_path}' must stay inside the output directory.")
        return self._output_dir.joinpath(*relative.parts)

    def _prepare_sync(self) -> None:
        manifest = self.manifest
        public_output = self._output_dir / PUBLIC_DIRNAME
        public_output.mkdir(parents=True, exist_ok=True)

        public_source = self._source_dir / manifest.public_dir
        if public_source.is_dir():
            shutil.copytree(public_source, public_output, dirs_exist_ok=True)

        chunks: list[str] = []
        stylesheet_source = self._source_dir / manifest.stylesheet
        if stylesheet_source.is_file():
            chunks.append(stylesheet_source.read_text(encoding="utf-8"))
        else:
            logger.debug("No stylesheet found at %s", stylesheet_source)
        if self._custom_styles_path is not None:
            chunks.append(self._custom_styles_path.read_text(encoding="utf-8"))

        stylesheet = "\n".join(chunk.rstrip("\n") for chunk in chunks)
        target = public_output / self._stylesheet_name
        target.write_text(f"{stylesheet}\n" if stylesheet else "", encoding="utf-8")
        logger.info("Prepared %s from %s", target, self._source_dir)

    def _render_sync(self, page_path: str, context: Mapping[str, Any]) -> Path:
        destination = self.page_destination(page_path)
        try:
            template = self.environment.get_template(self.manifest.template)
            html = template.render(**context)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(html, encoding="utf-8")
        except RenderError:
            raise
        except Exception as exc:
            # filters and template expressions can raise arbitrary exceptions
            raise RenderError(f"Failed to render album page '{page_path}': {exc}") from exc
        logger.debug("Rendered %s", destination)
        return destination

    def _load_manifest(self) -> ThemeManifest:
        manifest_path = self._source_dir / MANIFEST_FILENAME
        if not manifest_path.exists():
            logger.debug("Theme manifest not found at %s; using defaults.", manifest_path)
            return ThemeManifest(name=self._source_dir.name)
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise AssetPreparationError(f"Failed to load theme manifest at {manifest_path}: {exc}") from exc
        try:
            return ThemeManifest.model_validate(data)
        except ValidationError as exc:
            raise AssetPreparationError(f"Theme manifest validation failed for {manifest_path}: {exc}") from exc
