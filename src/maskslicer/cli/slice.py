"""Command-line tool for slicing STL models into layer mask images.

The maskslicer CLI loads one or more STL files, places them on the build
plate, slices them into PNG layer masks for a masked-LCD resin printer and
reports printability problems.
"""

import logging
import signal
import threading
import time
from contextlib import contextmanager
from pathlib import Path

import click
import numpy as np
from rich.console import Console

from maskslicer import __version__
from maskslicer.errors import ConfigurationError, SliceCancelled
from maskslicer.io.export import export_json, export_png
from maskslicer.io.stl import load_stl
from maskslicer.layers.constraints import check_stack
from maskslicer.logging_config import setup_logging
from maskslicer.mesh.transforms import compose, rotation_matrix, scale_matrix, translation_matrix
from maskslicer.mesh.triangles import transform_solids
from maskslicer.slicing.raster import FILL_RULES
from maskslicer.slicing.schedule import schedule_for
from maskslicer.slicing.slicer import MeshSlicer, SliceConfig
from maskslicer.slicing.tolerances import PLANE_EPSILON, Tolerances

from .progress import SliceProgress, format_time, print_slice_info

console = Console()


@contextmanager
def cancel_on_interrupt(cancel: threading.Event):
    """
    Turn Ctrl-C into a cancel request for the duration of the block.

    Worker threads poll ``cancel`` between planes, so the run stops with
    SliceCancelled instead of KeyboardInterrupt. The previous SIGINT handler
    is restored on exit. Outside the main thread this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        cancel.set()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def parse_pair(value: str, cast=float):
    """Parse "WxH" into a (W, H) tuple."""
    parts = value.lower().replace("×", "x").split("x")
    if len(parts) != 2:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}")
    try:
        return cast(parts[0]), cast(parts[1])
    except ValueError as err:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}") from err


@click.command()
@click.argument("models", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=Path("layers"),
    show_default=True,
    help="Directory for layer PNG files",
)
@click.option(
    "--pixels",
    default="2560x1440",
    show_default=True,
    help="Canvas size in pixels (WIDTHxHEIGHT)",
)
@click.option(
    "--size",
    default="120.96x68.04",
    show_default=True,
    help="Physical canvas size in model units (WIDTHxHEIGHT)",
)
@click.option("--thickness", "-t", type=float, default=0.05, show_default=True, help="Layer thickness")
@click.option("--workers", "-w", type=int, help="Worker threads (default: CPU count)")
@click.option(
    "--fill-rule",
    type=click.Choice(list(FILL_RULES)),
    default="union",
    show_default=True,
    help="How overlapping loops combine",
)
@click.option(
    "--offset",
    type=float,
    nargs=3,
    default=(0.0, 0.0, 0.0),
    help="Translate models by X Y Z after scaling and rotation",
)
@click.option("--scale", type=float, default=1.0, show_default=True, help="Uniform scale factor")
@click.option("--rotate-z", type=float, default=0.0, help="Rotation about Z in degrees")
@click.option("--epsilon", type=float, default=PLANE_EPSILON, show_default=True, help="Geometric tolerance")
@click.option("--check", is_flag=True, help="Report printability problems")
@click.option("--json", "write_json", is_flag=True, help="Also write layers.json with loop polygons")
@click.option("--dry-run", is_flag=True, help="Load and validate without slicing")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option("--log-file", type=click.Path(path_type=Path), help="Write log records to a file")
@click.version_option(version=__version__, prog_name="maskslicer")
@click.pass_context
def main(
    ctx: click.Context,
    models: tuple[Path, ...],
    output: Path,
    pixels: str,
    size: str,
    thickness: float,
    workers: int | None,
    fill_rule: str,
    offset: tuple[float, float, float],
    scale: float,
    rotate_z: float,
    epsilon: float,
    check: bool,
    write_json: bool,
    dry_run: bool,
    verbose: bool,
    log_file: Path | None,
):
    """Slice STL MODELS into PNG layer masks.

    All models share one placement: scaled, rotated about Z, then offset.
    The canvas is centred on the model origin.

    Example:

    \b
        maskslicer part.stl --pixels 2560x1440 --size 120.96x68.04 -t 0.05 -o out/
    """
    setup_logging(logging.DEBUG if verbose else logging.WARNING, str(log_file) if log_file else None)

    cancel = threading.Event()

    try:
        pixel_x, pixel_y = parse_pair(pixels, int)
        physical_x, physical_y = parse_pair(size, float)

        config = SliceConfig.create(
            pixel_x=pixel_x,
            pixel_y=pixel_y,
            physical_x=physical_x,
            physical_y=physical_y,
            thickness=thickness,
            tolerances=Tolerances(plane=epsilon, dedup=epsilon, key=epsilon),
            fill_rule=fill_rule,
            workers=workers,
        )
        placement = compose(
            scale_matrix(scale),
            rotation_matrix((0, 0, 1), np.deg2rad(rotate_z)),
            translation_matrix(offset),
        )
    except (ConfigurationError, ValueError, click.BadParameter) as e:
        console.print(f"\n[bold red]Configuration Error:[/bold red] {e}")
        ctx.exit(1)

    try:
        console.print(f"\n[bold]Slicing:[/bold] {', '.join(m.name for m in models)}", style="blue")
        console.print("─" * 60)

        console.print("Loading models...", style="dim")
        solids = [load_stl(path, model_matrix=placement) for path in models]
        geometry = transform_solids(solids)
        heights = schedule_for(geometry, config.thickness)

        print_slice_info(console, geometry, config, len(heights), output)

        if dry_run:
            console.print("[yellow]Dry run - models not sliced[/yellow]")
            ctx.exit(0)

        start_time = time.time()
        progress = SliceProgress(console, total=len(heights))
        try:
            with cancel_on_interrupt(cancel):
                stack = MeshSlicer(config).slice_geometry(
                    geometry, cancel=cancel, callback=progress.update
                )
        finally:
            progress.finish()

        files = export_png(stack, output)
        if write_json:
            export_json(stack, output / "layers.json")

        runtime = time.time() - start_time

        console.print("─" * 60)
        console.print("✓ [bold green]Slicing complete![/bold green]")
        console.print(f"  Layers: {stack.num_layers} of {stack.num_planes} planes")
        console.print(f"  Output: {output} ({len(files)} images)")
        console.print(f"  Runtime: {format_time(runtime)}")

        if check:
            violations = check_stack(stack, geometry)
            if violations:
                console.print(f"\n[yellow]{len(violations)} printability issue(s):[/yellow]")
                for violation in violations:
                    console.print(f"  {violation}")
            else:
                console.print("\n[green]No printability issues found[/green]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        ctx.exit(130)
    except SliceCancelled as e:
        console.print(f"\n[yellow]{e}[/yellow]")
        ctx.exit(130)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        ctx.exit(1)


if __name__ == "__main__":
    main()
