"""CLI entry point for dumping NCM files from the terminal.

Usage: ncmdump /path/to/music/ song.ncm -o /path/to/output/

Paths given on the command line are handled like one drop gesture
(directories are searched recursively). Without paths, the file picker
prompt is shown instead. Without ``-o``, the output directory is prompted
for; an empty answer aborts.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.prompt import Prompt
from rich.table import Table

from ncmdump_service.factory import build_controller
from ncmdump_service.queue.events import Drop, EventBus
from ncmdump_service.queue.ports import FileFilter
from ncmdump_service.queue.state import QueueState
from ncmdump_service.settings import settings

logger = logging.getLogger("ncmdump.cli")


class ConsoleDialogs:
    """Dialog host backed by terminal prompts."""

    def __init__(self, console: Console, output_dir: str | None = None) -> None:
        self._console = console
        self._output_dir = output_dir

    async def _ask(self, question: str) -> str:
        return await asyncio.to_thread(Prompt.ask, question, console=self._console, default="")

    async def pick_files(self, filters: Sequence[FileFilter]) -> list[str] | None:
        names = ", ".join(f"{f.name} (*.{' *.'.join(f.extensions)})" for f in filters)
        answer = (await self._ask(f"Files to add [{names}], blank to cancel")).strip()
        if not answer:
            return None
        paths = shlex.split(answer)
        return [p for p in paths if not filters or any(f.matches(p) for f in filters)]

    async def pick_directory(self) -> str | None:
        if self._output_dir:
            return self._output_dir
        answer = (await self._ask("Output directory, blank to cancel")).strip()
        return answer or None

    async def notify_message(self, text: str, title: str) -> None:
        self._console.print(Panel(text, title=title, expand=False))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ncmdump",
        description="Dump NetEase Cloud Music .ncm files to plain audio.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files or directories to queue (directories are searched recursively).",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=settings.default_output_dir,
        help="Directory to write dumped files into (prompted for when omitted).",
    )
    parser.add_argument(
        "--no-tags",
        action="store_true",
        help="Do not write title/artist/album tags to dumped audio.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _queue_table(files: Sequence[str]) -> Table:
    table = Table(title=f"Queued files ({len(files)})")
    table.add_column("#", justify="right")
    table.add_column("Path")
    for i, path in enumerate(files, 1):
        table.add_row(str(i), path)
    return table


async def run(args: argparse.Namespace, console: Console) -> int:
    """Queue the given paths and dump them. Returns the process exit code."""
    controller = build_controller(ConsoleDialogs(console, output_dir=args.output_dir))
    bus = EventBus()

    async with controller.subscribe(bus):
        if args.paths:
            bus.publish(Drop(paths=tuple(args.paths)))
            await controller.drain()
        else:
            await controller.select_files()

        files = list(controller.state.files)
        if not files:
            console.print(f"No .{settings.ncm_extension} files found.")
            return 1
        console.print(_queue_table(files))

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task_id = progress.add_task("Dumping", total=100)

            def on_change(state: QueueState) -> None:
                if state.progress > 0:
                    progress.update(task_id, completed=state.progress)

            controller.state.add_listener(on_change)
            try:
                report = await controller.dump()
            finally:
                controller.state.remove_listener(on_change)
            if report is not None:
                progress.update(task_id, completed=100)

    if report is None:
        console.print("Aborted.")
        return 1

    if report.failed:
        console.print(f"{report.failed} of {report.total} file(s) failed, see log above.")
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the ncmdump CLI."""
    args = parse_args(argv)
    console = Console()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    if args.no_tags:
        settings.write_tags = False

    sys.exit(asyncio.run(run(args, console)))


if __name__ == "__main__":
    main()
