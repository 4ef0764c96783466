"""Progress display for slicing runs.

Provides a rich terminal UI for slicing progress including:
- Progress bar with percentage
- Elapsed time and ETA
- Throughput (planes/s)
- Memory usage
"""

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from maskslicer.mesh.triangles import MergedGeometry
    from maskslicer.slicing.slicer import SliceConfig


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1m 23s" or "2h 15m"
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format byte count for display, e.g. "1.5 GB"."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class SliceProgress:
    """Real-time progress display for a slicing run.

    Pass :meth:`update` as the slicer's ``callback``; it is invoked once per
    finished plane.

    Example:
        >>> with SliceProgress(console, total=num_planes) as progress:
        ...     stack = slicer.slice_geometry(geometry, callback=progress.update)
    """

    def __init__(self, console: Console, total: int, update_interval: float = 0.1):
        """Initialize progress display.

        Args:
            console: Rich console instance
            total: Number of planes in the schedule
            update_interval: Minimum time between stats refreshes (seconds)
        """
        self.console = console
        self.total = total
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0.0
        self.completed = 0

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            TextColumn("[dim]{task.fields[stats]}"),
            console=console,
        )

        self.task = self.progress.add_task("Slicing", total=total, stats="")
        self.progress.start()

    def update(self, done: int, total: int) -> None:
        """Record that ``done`` of ``total`` planes have finished.

        Statistics are rate limited; the bar itself always advances.
        """
        self.completed = done
        current_time = time.time()

        if current_time - self.last_update < self.update_interval and done < total:
            self.progress.update(self.task, completed=done)
            return

        elapsed = current_time - self.start_time
        planes_per_second = done / elapsed if elapsed > 0 else 0.0

        memory = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, memory)

        stats = (
            f"{planes_per_second:.1f} planes/s | "
            f"mem {format_bytes(memory)} (peak {format_bytes(self.peak_memory)})"
        )
        self.progress.update(self.task, completed=done, stats=stats)
        self.last_update = current_time

    def finish(self) -> None:
        """Stop the progress display."""
        self.progress.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_slice_info(
    console: Console,
    geometry: "MergedGeometry",
    config: "SliceConfig",
    num_planes: int,
    output_dir,
) -> None:
    """Print slicing parameters before running.

    Args:
        console: Rich console instance
        geometry: Merged world-space geometry
        config: Slicing configuration
        num_planes: Number of scheduled planes
        output_dir: Where layer images will be written
    """
    canvas = config.canvas
    box = geometry.bounding_box

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Triangles", f"{geometry.num_triangles:,}")
    if box.is_empty:
        table.add_row("Extent", "empty")
    else:
        dx, dy, dz = box.size
        table.add_row("Extent", f"{dx:.2f} × {dy:.2f} × {dz:.2f}")
        table.add_row("Z range", f"{box.min_corner[2]:.3f} – {box.max_corner[2]:.3f}")

    table.add_row(
        "Canvas",
        f"{canvas.pixel_x} × {canvas.pixel_y} px over "
        f"{canvas.physical_x:g} × {canvas.physical_y:g} ({canvas.ppm:.2f} px/unit)",
    )
    table.add_row("Layer thickness", f"{config.thickness:g}")
    table.add_row("Planes", str(num_planes))
    table.add_row("Fill rule", config.fill_rule)
    table.add_row("Workers", str(config.num_workers))
    table.add_row("Output", str(output_dir))

    console.print(table)
    console.print()
