"""Turn an album tree into deferred page renders and run them together."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence

from .models import Album, TemplateContext, walk_albums

logger = logging.getLogger(__name__)

RenderUnit = Callable[[], Awaitable[Path]]


class PageRenderer(Protocol):
    async def render(self, page_path: str, context: Mapping[str, Any]) -> Path: ...


def build_render_tasks(
    renderer: PageRenderer,
    base_context: TemplateContext,
    album: Album,
    breadcrumbs: Sequence[Album] = (),
) -> list[RenderUnit]:
    """Create one render unit per album, parents before their children.

    Nothing is rendered here; each unit renders its page when called.
    """
    units: list[RenderUnit] = []
    for current, crumbs in walk_albums(album):
        trail = tuple(breadcrumbs) + crumbs
        units.append(_make_unit(renderer, current, base_context.for_page(current, trail)))
    return units


def _make_unit(renderer: PageRenderer, album: Album, context: TemplateContext) -> RenderUnit:
    page_path = album.path

    async def render_page() -> Path:
        return await renderer.render(page_path, context.as_template_dict())

    return render_page


async def run_render_tasks(units: Sequence[RenderUnit]) -> list[Path]:
    """Run every unit concurrently and wait for all of them to settle.

    The first failure to complete is raised once the remaining units have
    finished; otherwise the written paths are returned in unit order.
    """
    futures = [asyncio.ensure_future(unit()) for unit in units]
    first_error: Exception | None = None
    for completed in asyncio.as_completed(futures):
        try:
            await completed
        except Exception as exc:
            logger.error("Album page failed: %s", exc)
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error
    return [future.result() for future in futures]
