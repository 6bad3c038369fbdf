"""Template filters shared by every theme."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any

from jinja2 import Environment, pass_context
from jinja2.runtime import Context


def page_depth(page_path: str) -> int:
    """Number of directories between the site root and the rendered page."""
    return len(PurePosixPath(page_file(page_path)).parts) - 1


def page_file(page_path: str) -> str:
    """Map an album path to the relative file it renders to."""
    normalized = page_path.lstrip("/")
    if not normalized or normalized.endswith("/"):
        return f"{normalized}index.html"
    if not PurePosixPath(normalized).suffix:
        return f"{normalized}/index.html"
    return normalized


def make_relative(target: str, *, depth: int) -> str:
    if target.startswith(("http://", "https://", "//", "#", "mailto:")):
        return target
    normalized = target.lstrip("/")
    prefix = "./" if depth == 0 else "../" * depth
    return f"{prefix}{normalized}"


@pass_context
def relative(context: Context, target: str) -> str:
    """Resolve a site-root path against the page currently being rendered."""
    album = context.get("album")
    depth = page_depth(album.path) if album is not None else 0
    return make_relative(str(target), depth=depth)


@pass_context
def breadcrumb_trail(context: Context, breadcrumbs: Any = None) -> list[Any]:
    crumbs = list(breadcrumbs if breadcrumbs is not None else context.get("breadcrumbs") or [])
    album = context.get("album")
    if album is not None:
        crumbs.append(album)
    return crumbs


def install_filters(environment: Environment) -> None:
    environment.filters["relative"] = relative
    environment.filters["breadcrumb_trail"] = breadcrumb_trail
