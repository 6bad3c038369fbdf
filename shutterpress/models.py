"""Album tree and template context models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Album(BaseModel):
    """A node in the album tree.

    Only ``path``, ``url`` and ``albums`` are interpreted by the build; any
    other field (title, photos, ...) is kept as-is and exposed to templates.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    path: str
    url: str = Field(default="")
    albums: list["Album"] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _default_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and "url" not in data and isinstance(data.get("path"), str):
            data = {**data, "url": data["path"].lstrip("/")}
        return data


def walk_albums(root: Album) -> Iterator[tuple[Album, tuple[Album, ...]]]:
    """Yield ``(album, breadcrumbs)`` pairs in pre-order.

    Children are visited in declared order; breadcrumbs run from the root to
    the parent and are empty for the root itself.
    """
    stack: list[tuple[Album, tuple[Album, ...]]] = [(root, ())]
    while stack:
        album, breadcrumbs = stack.pop()
        yield album, breadcrumbs
        crumbs = breadcrumbs + (album,)
        for child in reversed(album.albums):
            stack.append((child, crumbs))


def count_albums(root: Album) -> int:
    return sum(1 for _ in walk_albums(root))


@dataclass(frozen=True, slots=True)
class TemplateContext:
    """Data handed to the album template, specialised once per page."""

    gallery: Mapping[str, Any]
    settings: Mapping[str, Any]
    home: Album
    breadcrumbs: tuple[Album, ...] = field(default=())
    album: Album | None = None

    @classmethod
    def create(
        cls,
        options: Mapping[str, Any],
        root: Album,
        settings: Mapping[str, Any],
    ) -> "TemplateContext":
        # "gallery.home" predates the top-level "home" key; themes still read it.
        gallery = {**options, "home": root}
        return cls(gallery=gallery, settings=settings, home=root)

    def for_page(self, album: Album, breadcrumbs: tuple[Album, ...]) -> "TemplateContext":
        return replace(self, breadcrumbs=tuple(breadcrumbs), album=album)

    def as_template_dict(self) -> dict[str, Any]:
        return {
            "gallery": self.gallery,
            "settings": self.settings,
            "home": self.home,
            "breadcrumbs": list(self.breadcrumbs),
            "album": self.album,
        }
