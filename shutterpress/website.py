"""Build orchestration: assets first, then every album page concurrently."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from .config import BuildOptions, load_theme_settings
from .models import Album, TemplateContext
from .seo import emit_seo
from .tasks import RenderUnit, build_render_tasks, run_render_tasks
from .themes import Theme, resolve_theme_path

logger = logging.getLogger(__name__)

THEME_BASE_DIR = Path(__file__).resolve().parent / "theme_base"


@dataclass(slots=True)
class BuildResult:
    """Pages written by a successful build."""

    pages: list[Path] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.pages)


class SiteBuilder:
    """Render an album tree into a static site.

    Everything that can fail without touching the output directory (theme
    lookup, settings parsing) happens in the constructor.
    """

    def __init__(self, root_album: Album, options: BuildOptions, *, base_dir: Path = THEME_BASE_DIR) -> None:
        self.root_album = root_album
        self.options = options

        # shared reset, helper scripts and the base.html layout
        self.base = Theme(base_dir, options.output, stylesheet_name="core.css")

        theme_dir = options.theme_path or resolve_theme_path(options.theme)
        self.theme = Theme(
            theme_dir,
            options.output,
            stylesheet_name="theme.css",
            custom_styles_path=options.theme_style,
            fallback_dirs=[base_dir],
        )

        settings = load_theme_settings(options.theme_settings)
        self.context = TemplateContext.create(options.model_dump(mode="json"), root_album, settings)
        self.units: list[RenderUnit] = build_render_tasks(self.theme, self.context, root_album, ())
        self.seo_task: asyncio.Task[list[Path]] | None = None

    async def run(self) -> BuildResult:
        start = time.perf_counter()

        # Not awaited: SEO output does not gate the build result.
        self.seo_task = asyncio.create_task(
            asyncio.to_thread(_emit_seo_logged, self.options.output, self.options.seo_location, self.root_album)
        )

        logger.info("Preparing base assets from %s", self.base.source_dir)
        await self.base.prepare()
        logger.info("Preparing theme assets from %s", self.theme.source_dir)
        await self.theme.prepare()

        logger.info("Rendering %d album page(s)", len(self.units))
        pages = await run_render_tasks(self.units)
        return BuildResult(pages=pages, duration_seconds=time.perf_counter() - start)


def _emit_seo_logged(output: Path, seo_location: str | None, root_album: Album) -> list[Path]:
    # Runs in the worker thread, so failures are reported even after the
    # owning task has been cancelled at loop shutdown.
    try:
        return emit_seo(output, seo_location, root_album)
    except (OSError, ValueError) as exc:
        logger.error("Failed to write SEO files: %s", exc)
        return []


def build_site(root_album: Album, options: BuildOptions) -> BuildResult:
    """Build the whole site, raising the first error encountered."""
    builder = SiteBuilder(root_album, options)
    return asyncio.run(builder.run())
