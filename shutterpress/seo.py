"""Sitemap and robots.txt generation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from html import escape
from pathlib import Path

from .models import Album, walk_albums

logger = logging.getLogger(__name__)

SITEMAP_FILENAME = "sitemap.xml"
ROBOTS_FILENAME = "robots.txt"
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


def emit_seo(output_dir: Path, seo_location: str | None, root_album: Album) -> list[Path]:
    """Write robots.txt and sitemap.xml when a public base URL is configured."""
    if not seo_location:
        return []

    prefix = normalize_prefix(seo_location)
    output_dir.mkdir(parents=True, exist_ok=True)

    robots_path = output_dir / ROBOTS_FILENAME
    robots_path.write_text(render_robots(prefix), encoding="utf-8")

    sitemap_path = output_dir / SITEMAP_FILENAME
    sitemap_path.write_text(render_sitemap(prefix, root_album), encoding="utf-8")

    logger.info("SEO files written to %s", output_dir)
    return [robots_path, sitemap_path]


def normalize_prefix(seo_location: str) -> str:
    return seo_location.rstrip("/") + "/"


def render_robots(prefix: str) -> str:
    return f"User-Agent: *\nDisallow:\n\nSitemap: {prefix}{SITEMAP_FILENAME}\n"


def render_sitemap(prefix: str, root_album: Album, *, now: datetime | None = None) -> str:
    # One timestamp for the whole document.
    lastmod = _format_lastmod(now or datetime.now(timezone.utc))
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">',
    ]
    for album, _ in walk_albums(root_album):
        lines.append("    <url>")
        lines.append(f"        <loc>{escape(prefix + album.url, quote=False)}</loc>")
        lines.append(f"        <lastmod>{lastmod}</lastmod>")
        lines.append("    </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def _format_lastmod(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
