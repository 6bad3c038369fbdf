"""CLI entrypoints for Shutterpress."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from .albums import AlbumTreeError, load_album_tree
from .config import BuildOptions, SettingsParseError, load_config
from .models import Album, count_albums
from .themes import ThemeError, available_themes
from .website import BuildResult, build_site

console = Console()
app = typer.Typer(help="Shutterpress static photo-album builder.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file or project directory."),
]


@app.command()
def build(
    config_path: ConfigPathOption = "shutterpress.yml",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Override the output directory."),
    ] = None,
    theme: Annotated[
        str | None,
        typer.Option("--theme", help="Theme name to use instead of the configured one."),
    ] = None,
    seo_location: Annotated[
        str | None,
        typer.Option("--seo-location", help="Public base URL used for sitemap.xml and robots.txt."),
    ] = None,
) -> None:
    """Render every album page plus shared assets into the output directory."""
    options = _load(config_path)
    if output is not None:
        options.output = output.resolve()
    if theme is not None:
        options.theme = theme
        options.theme_path = None
    if seo_location is not None:
        options.seo_location = seo_location.strip() or None

    root_album = _load_albums(options)

    try:
        result = build_site(root_album, options)
    except SettingsParseError as exc:
        console.print(f"[bold red]Invalid theme settings[/]: {exc}")
        raise typer.Exit(code=1) from exc
    except ThemeError as exc:
        console.print(f"[bold red]Build failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    _print_build_summary(result, options, root_album)


@app.command()
def themes() -> None:
    """List the themes bundled with Shutterpress."""
    names = available_themes()
    if not names:
        console.print("[bold yellow]No bundled themes found.[/]")
        return
    for name in names:
        console.print(f"- {name}")


def _print_build_summary(result: BuildResult, options: BuildOptions, root_album: Album) -> None:
    console.print(
        "[bold green]Albums[/]: "
        f"{result.total}/{count_albums(root_album)} page(s) written to "
        f"{_display_path(options.output)} in {result.duration_seconds:.2f}s"
    )
    if options.seo_location:
        console.print(
            "[bold green]SEO[/]: sitemap.xml and robots.txt for "
            f"{options.seo_location}"
        )
    else:
        console.print("[bold blue]SEO[/]: skipped (no seo_location configured).")


def _load(path: str) -> BuildOptions:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_albums(options: BuildOptions) -> Album:
    try:
        return load_album_tree(options.albums)
    except AlbumTreeError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _display_path(path: Path) -> str:
    try:
        return path.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return path.as_posix()


if __name__ == "__main__":
    app()
