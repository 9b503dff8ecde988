"""
CLI entry point — argument parsing and command dispatch.

Exit codes for ``edlkit run``: 0 when every file succeeded, 1 when at
least one file failed, 2 for a parse error or unreadable script.
"""

import argparse
import logging
import sys

from .cli_display import ResultDisplay, setup_logger
from .config import Config
from .editing.analysis import analyze_file_access
from .editing.errors import ParseError
from .editing.executor import run_script
from .editing.formatting import format_preview
from .editing.metrics import log_run_metrics, read_edit_stats
from .editing.source import FileSystemSource
from .session import clear_session, load_session, save_session

log = logging.getLogger("edlkit")


def _read_script(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edlkit", description="Run Edit Description Language scripts"
    )
    parser.add_argument("--config", default=None,
                        help="Path to .edlkit.yaml config file")
    parser.add_argument("--session", default=None,
                        help="Session file holding registers (default: from config)")
    parser.add_argument("--verbose", action="store_true",
                        help="Also log to stderr")
    parser.add_argument("--no-color", action="store_true",
                        help="Disable coloured output")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a script ('-' reads stdin)")
    run.add_argument("script")
    run.add_argument("--root", default=None,
                     help="Directory relative paths are resolved against")
    run.add_argument("--detail", action="store_true",
                     help="Show full contents of the final selection")
    run.add_argument("--dry-run", action="store_true",
                     help="Execute without writing any file")
    run.add_argument("--no-validate", action="store_true",
                     help="Skip post-edit syntax validation")
    run.add_argument("--no-metrics", action="store_true",
                     help="Do not record edit metrics")

    check = sub.add_parser("check", help="Parse a script and list file access")
    check.add_argument("script")

    registers = sub.add_parser("registers", help="List or clear session registers")
    registers.add_argument("--clear", action="store_true",
                           help="Clear all registers and end the session")

    stats = sub.add_parser("stats", help="Show edit metrics")
    stats.add_argument("--last", type=int, default=50,
                       help="Number of recent entries to include")
    return parser


def _cmd_run(args, cfg: Config, display: ResultDisplay) -> int:
    try:
        script = _read_script(args.script)
    except OSError as exc:
        display.show_error(f"Cannot read script: {exc}")
        return 2

    log.info("Running script %s:\n%s", args.script, format_preview(script))
    registers = load_session(args.session)
    source = FileSystemSource(root=args.root, write_through=not args.dry_run)

    options = cfg.executor_options()
    if args.no_validate:
        options["validate_syntax"] = False
    try:
        result = run_script(script, source, registers, **options)
    except ParseError as exc:
        display.show_error(f"Parse error: {exc}")
        return 2

    if not args.dry_run:
        save_session(args.session, registers)
    if cfg.METRICS and not args.no_metrics:
        log_run_metrics(result, cfg.METRICS_DIR)

    display.show_result(result, detail=args.detail,
                        max_content_chars=cfg.MAX_CONTENT_CHARS)
    return 0 if result.ok else 1


def _cmd_check(args, display: ResultDisplay) -> int:
    try:
        access = analyze_file_access(_read_script(args.script))
    except OSError as exc:
        display.show_error(f"Cannot read script: {exc}")
        return 2
    except ParseError as exc:
        display.show_error(f"Parse error: {exc}")
        return 2
    for entry in access:
        modes = "".join(m for m, on in (("r", entry.read), ("w", entry.write)) if on)
        display.write(f"{modes:<2} {entry.path}")
    return 0


def _cmd_registers(args, display: ResultDisplay) -> int:
    if args.clear:
        clear_session(args.session)
        display.write("Registers cleared.")
        return 0
    registers = load_session(args.session)
    if not len(registers):
        display.show_dim("No registers.")
        return 0
    for name, text in registers.items():
        display.write(f"{name}: {len(text)} bytes")
    return 0


def _cmd_stats(args, cfg: Config, display: ResultDisplay) -> int:
    stats = read_edit_stats(last_n=args.last, metrics_dir=cfg.METRICS_DIR)
    display.write(f"Files processed:    {stats['total_files']}")
    display.write(f"Success rate:       {stats['success_rate']:.1f}%")
    display.write(f"Avg mutations/file: {stats['avg_mutations']:.2f}")
    display.write(f"Salvaged registers: {stats['salvaged_registers']}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── 0. Load config ──
    cfg = Config.load(args.config)
    args.session = args.session or cfg.SESSION_FILE
    setup_logger(cfg.LOG_DIR, verbose=args.verbose)

    display = ResultDisplay(color=False if args.no_color else None)

    if args.command == "run":
        return _cmd_run(args, cfg, display)
    if args.command == "check":
        return _cmd_check(args, display)
    if args.command == "registers":
        return _cmd_registers(args, display)
    return _cmd_stats(args, cfg, display)


if __name__ == "__main__":
    sys.exit(main())
