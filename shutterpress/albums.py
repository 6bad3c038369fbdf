"""Load an album tree description from disk."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .helpers import page_file
from .models import Album, walk_albums


class AlbumTreeError(ValueError):
    """Raised when an album tree file is missing, malformed, or inconsistent."""


def load_album_tree(path: Path) -> Album:
    """Read a YAML or JSON album tree and validate it.

    The document root is the home album. Every album needs a ``path``; paths
    must be unique because each one names an output page.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise AlbumTreeError(f"Unable to read album tree {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise AlbumTreeError(f"Album tree {path} is not valid YAML or JSON: {exc}") from exc
    return parse_album_tree(data, source=path)


def parse_album_tree(data: Any, *, source: Path | str = "<memory>") -> Album:
    if not isinstance(data, dict):
        raise AlbumTreeError(f"Album tree {source} must define the home album as a mapping.")
    try:
        root = Album.model_validate(data)
    except ValidationError as exc:
        raise AlbumTreeError(f"Album tree validation failed for {source}: {exc}") from exc

    seen: dict[str, str] = {}
    for album, _ in walk_albums(root):
        target = page_file(album.path)
        if target in seen:
            raise AlbumTreeError(
                f"Album paths '{seen[target]}' and '{album.path}' both render to '{target}' in {source}."
            )
        seen[target] = album.path
    return root
