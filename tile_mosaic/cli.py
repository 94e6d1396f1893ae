"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from tile_mosaic.catalog import build_catalog
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import InputError, MosaicError
from tile_mosaic.image_io import make_comparison_grid
from tile_mosaic.session import MosaicSession

app = typer.Typer(
    name="tile-mosaic",
    help="Rebuild any image as a photomosaic from a folder of tiles.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
        force=True,
    )


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- build command -----------------------------------------------------

@app.command()
def build(
    source: Path = typer.Argument(..., help="Image to turn into a mosaic"),
    library: Path = typer.Argument(..., help="Folder of tile images"),
    output: Path = typer.Option(
        _DEFAULTS.output_path, "--output", "-o", help="PNG file to write",
    ),
    width: int = typer.Option(
        _DEFAULTS.intermediate_width, "--width", "-W", help="Grid columns",
    ),
    height: int = typer.Option(
        _DEFAULTS.intermediate_height, "--height", "-H", help="Grid rows",
    ),
    threshold: float = typer.Option(
        _DEFAULTS.unique_threshold, "--threshold", "-t",
        help="Largest (exclusive) colour distance a tile may have",
    ),
    unique: bool = typer.Option(
        _DEFAULTS.prioritize_unique, "--unique/--no-unique",
        help="Spend every tile before reusing one",
    ),
    subpixel: int = typer.Option(
        _DEFAULTS.subpixel_size, "--subpixel", "-s", help="Tile side in pixels",
    ),
    color_space: str = typer.Option(
        _DEFAULTS.color_space, "--color-space", help="'rgb' or 'lab'",
    ),
    comparison: bool = typer.Option(
        False, "--comparison/--no-comparison",
        help="Also save a Source | Grid | Mosaic comparison image",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic of SOURCE from the tiles in LIBRARY."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            intermediate_width=width,
            intermediate_height=height,
            prioritize_unique=unique,
            unique_threshold=threshold,
            subpixel_size=subpixel,
            color_space=color_space,
            output_path=output,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid option:[/red] {exc}")
        raise typer.Exit(2) from exc

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC GENERATOR[/bold]\n"
        f"Grid: {cfg.intermediate_width}x{cfg.intermediate_height}  |  "
        f"Tile: {cfg.subpixel_size}px\n"
        f"Threshold: {cfg.unique_threshold}  |  Unique: {cfg.prioritize_unique}  |  "
        f"Colour space: {cfg.color_space}",
        border_style="cyan",
    ))

    session = MosaicSession(cfg)
    t_total = time.perf_counter()
    try:
        session.select_image(source)
        catalog = session.rebuild_catalog(library)
        if not catalog:
            console.print(f"[yellow]No usable tiles found in {library}/[/yellow]")
        session.refresh()
        out_path = session.export()
        if comparison:
            comp_path = out_path.with_name(f"{out_path.stem}_comparison.png")
            try:
                make_comparison_grid(
                    session.source, session.intermediate, session.canvas, comp_path,
                )
            except OSError as exc:
                msg = f"Failed to save comparison image {comp_path}: {exc}"
                raise InputError(msg) from exc
    except MosaicError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    result = session.result
    elapsed = time.perf_counter() - t_total
    h, w = result.canvas.shape[:2]
    distinct = len({m for m in result.matches if m is not None})
    console.print(
        f"  [green]✓[/green] {out_path}  "
        f"[dim]{w}x{h} px  matched={result.stats.matches}  "
        f"unmatched={result.stats.misses}  transparent={result.skipped}  "
        f"distinct tiles={distinct}  time={elapsed:.1f}s[/dim]"
    )


# -- catalog command ---------------------------------------------------

@app.command()
def catalog(
    library: Path = typer.Argument(..., help="Folder of tile images"),
    subpixel: int = typer.Option(_DEFAULTS.subpixel_size, "--subpixel", "-s"),
    limit: int = typer.Option(50, "--limit", "-n", help="Rows to show (0 = all)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Scan LIBRARY and list its tiles with their average colours."""
    _setup_logging(verbose)

    try:
        cat = build_catalog(library, subpixel_size=subpixel)
    except MosaicError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    table = Table(title=f"{library} - {len(cat)} tiles")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Average", justify="center")
    table.add_column("")

    shown = list(cat) if limit <= 0 else list(cat)[:limit]
    for tile in shown:
        r, g, b = tile.avg_color
        hex_color = f"#{r:02x}{g:02x}{b:02x}"
        table.add_row(
            str(tile.index), tile.path.name, hex_color, f"[on {hex_color}]    [/]",
        )
    console.print(table)
    if len(shown) < len(cat):
        console.print(f"[dim]… {len(cat) - len(shown)} more[/dim]")


if __name__ == "__main__":
    app()
