from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from rich.console import Console

from .core.config import get_settings
from .core.logging import configure_logging, level_from_name
from .domain.errors import ProbeError
from .ingest.ffprobe_parser import MediaProber
from .ingest.toolchain import check_toolchain
from .workers.tasks import run_reprocess

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI.

    Returns:
        The argument parser.
    """
    parser = argparse.ArgumentParser(description="clipjury submission tooling")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Run ffprobe and print the duration summary as JSON")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    reprocess_parser = subparsers.add_parser(
        "reprocess",
        help="Backfill missing durations and thumbnails on stored submissions",
    )
    reprocess_parser.set_defaults(func=_cmd_reprocess)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=_cmd_serve)
    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    """Run ffprobe against a file and report whether it fits the duration window.

    Args:
        args: The command-line arguments.
    """
    settings = get_settings()
    media_path = Path(args.file).expanduser().resolve()
    if not media_path.exists():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)

    prober = MediaProber(settings.ffprobe_path, timeout_s=settings.probe_timeout_s)
    try:
        summary = prober.inspect(media_path)
    except ProbeError as exc:
        console.print(f"[red]ffprobe failed:[/] {exc}")
        sys.exit(3)

    window = settings.duration_window
    payload = summary.as_dict()
    payload["admissible"] = window.admits(summary.duration_s)
    payload["window_s"] = [window.min_s, window.max_s]
    console.print_json(data=payload)


def _cmd_reprocess(args: argparse.Namespace) -> None:
    """Backfill stored submissions.

    Args:
        args: The command-line arguments.
    """
    settings = get_settings()
    configure_logging(level=level_from_name(settings.log_level))
    updated = run_reprocess(settings)
    console.print(f"[green]Reprocessing complete.[/] Records updated: {updated}")


def _cmd_serve(args: argparse.Namespace) -> None:
    uvicorn.run("app.main:create_app", factory=True, host=args.host, port=args.port, reload=False)


def _run_environment_check() -> None:
    """Check for the presence of required external dependencies."""
    results = check_toolchain(get_settings())

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg or set CLIPJURY_FFMPEG_PATH.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
