r"""
DrvIndex - Driver package indexer and problem device matcher

Entry point: builds driver indexes from INF files and matches them against
devices that are missing a working driver.

Usage:
    python main.py create-index D:\Drivers                   Index a driver folder
    python main.py create-index D:\Drivers.7z -o net.json    Index a driver archive
    python main.py match D:\Drivers\DriverIndex.json         Match all problem devices
    python main.py match index.json --class Net --accurate   Network drivers, hardware ids only
    python main.py config --seven-zip "C:\Program Files\7-Zip\7z.exe"
    python main.py --debug ...                              Also write messages to the log file
"""

from __future__ import annotations

import argparse
import os
import sys

from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from InquirerPy import inquirer

# Same Console as write_console()
from ui import console


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="DrvIndex - Driver package indexer and problem device matcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Also append console messages to the log file",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Use this config file instead of the per-user one",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-index", help="Build a driver index from a folder or archive")
    create.add_argument("source", help="Driver folder or driver package archive")
    create.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Index file; relative paths are placed next to the source",
    )
    create.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Overwrite an existing index without asking",
    )

    match = sub.add_parser("match", help="Find indexed drivers for problem devices")
    match.add_argument("index", help="Index file created by create-index")
    match.add_argument(
        "-c", "--class",
        dest="driver_class",
        type=str,
        default=None,
        metavar="CLASS",
        help="Only match drivers of this class (e.g. Net, Display)",
    )
    match.add_argument(
        "-a", "--accurate",
        action="store_true",
        help="Match hardware ids only, ignore compatible ids",
    )

    cfg = sub.add_parser("config", help="Show or change the saved configuration")
    cfg.add_argument("--seven-zip", type=str, default=None, metavar="PATH", help="7-Zip executable")
    cfg.add_argument("--pnputil", type=str, default=None, metavar="PATH", help="pnputil executable")
    cfg.add_argument("--temp-dir", type=str, default=None, metavar="DIR", help="Scratch directory for archives")
    cfg.add_argument("--index-name", type=str, default=None, metavar="NAME", help="Default index file name")
    cfg.add_argument("--log-file", type=str, default=None, metavar="PATH", help="Debug log file")
    cfg.add_argument(
        "--debug-log",
        choices=("on", "off"),
        default=None,
        help="Always write the debug log",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    from config import load_config
    from errors import DrvIndexError
    from ui import ConsoleType, enable_debug_log, write_console

    config = load_config(args.config)
    if args.debug or config.debug:
        enable_debug_log(config.log_file)

    try:
        if args.command == "create-index":
            return _run_create_index(args, config)
        if args.command == "match":
            return _run_match(args, config)
        return _run_config(args, config)
    except DrvIndexError as exc:
        write_console(ConsoleType.ERROR, str(exc))
        return 1


def _progress() -> Progress:
    return Progress(
        SpinnerColumn("dots"),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=30),
        TextColumn("{task.percentage:>3.0f}%"),
        TextColumn("[cyan]({task.completed}/{task.total})[/]"),
        console=console,
        transient=True,
    )


def _run_create_index(args, config) -> int:
    from backends.archive import default_extractor
    from indexer import build_index, resolve_index_path
    from ui import show_build_summary

    output = args.output or config.index_name
    index_path = resolve_index_path(args.source, output)

    if os.path.exists(index_path) and not args.yes:
        try:
            overwrite = inquirer.confirm(
                message=f"{index_path} already exists. Overwrite?",
                default=False,
            ).execute()
        except KeyboardInterrupt:
            return 1
        if not overwrite:
            console.print("[yellow]Aborted. Existing index left unchanged.[/]")
            return 1

    extractor = None
    if os.path.isfile(args.source):
        extractor = default_extractor(config, args.source)

    with _progress() as progress:
        task = progress.add_task("Indexing...", total=None)

        def on_progress(name: str, current: int, total: int) -> None:
            progress.update(task, description=name, total=total, completed=current)

        summary = build_index(
            args.source,
            output,
            extractor=extractor,
            config=config,
            progress_cb=on_progress,
        )

    show_build_summary(summary)
    return 0


def _run_match(args, config) -> int:
    from backends.pnputil import PnpUtilEnumerator
    from index_store import load_index
    from matcher import match_devices
    from ui import ConsoleType, show_match_results, write_console

    records = load_index(args.index)
    write_console(ConsoleType.INFO, f"Loaded {len(records):,} drivers from {args.index}")

    with _progress() as progress:
        task = progress.add_task("Scanning for hardware changes...", total=None)

        def on_progress(name: str, current: int, total: int) -> None:
            progress.update(task, description=name, total=total, completed=current)

        results = match_devices(
            records,
            PnpUtilEnumerator(config.pnputil),
            driver_class=args.driver_class,
            accurate=args.accurate,
            progress_cb=on_progress,
        )

    show_match_results(results)
    return 0


def _run_config(args, config) -> int:
    from config import CONFIG_FILE, save_config

    changes = {
        "seven_zip": args.seven_zip,
        "pnputil": args.pnputil,
        "temp_dir": args.temp_dir,
        "index_name": args.index_name,
        "log_file": args.log_file,
    }
    changed = False
    for key, value in changes.items():
        if value is not None:
            setattr(config, key, value)
            changed = True
    if args.debug_log is not None:
        config.debug = args.debug_log == "on"
        changed = True

    if changed:
        save_config(config, args.config)
        console.print(f"[green]Configuration saved to {args.config or CONFIG_FILE}[/]")

    for key, value in vars(config).items():
        console.print(f"  [bold]{key:12s}[/] {value}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        sys.exit(130)
