from __future__ import annotations

import argparse
import json
import os
import sys
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .legacy import upgrade_legacy_markup
from .logging_utils import build_uvicorn_log_config, set_debug_logging
from .markup import check_round_trip, encode, extract_words, strip_annotations, strip_readings_only
from .nlp import NLPBackendUnavailableError
from .pipeline import READING_BACKENDS, analyze, build_reading_lookup
from .readings import ReadingLookup
from .tokens import serialize_tokens
from .tools import (
    DEFAULT_UNIDIC_URL,
    UNIDIC_ENV_VAR,
    UniDicInstallError,
    ensure_unidic_installed,
    resolve_unidic,
)
from .web import WebConfig, create_app

MARKUP_COMMANDS = {"strip", "hide-readings", "words"}


def _read_local_version() -> str | None:
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("yomi")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"yomi {__version__}",
    )


def _add_debug_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print diagnostics (missing readings, alignment failures) to stderr.",
    )


def _add_reading_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--readings",
        help="JSON file mapping surfaces to hiragana readings.",
    )
    parser.add_argument(
        "--backend",
        choices=READING_BACKENDS,
        default="none",
        help="Dictionary backend for readings missing from --readings (default: none).",
    )


def _add_text_argument(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "text",
        nargs="*",
        help=f"{help_text} Read from stdin when omitted.",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi",
        description=(
            "Japanese text → word-segmented furigana markup. "
            "Other commands: tokens, strip, hide-readings, words, upgrade, web, tools."
        ),
    )
    _add_version_flag(ap)
    _add_text_argument(ap, "Japanese text to annotate.")
    _add_reading_options(ap)
    ap.add_argument(
        "--check",
        action="store_true",
        help="Verify the markup decodes back to the same tokens before printing it.",
    )
    _add_debug_flag(ap)
    return ap


def build_tokens_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi tokens",
        description="Show how text is segmented and which readings each word receives.",
    )
    _add_version_flag(ap)
    _add_text_argument(ap, "Japanese text to analyze.")
    _add_reading_options(ap)
    ap.add_argument(
        "--json",
        action="store_true",
        help="Emit the token list as JSON instead of a table.",
    )
    _add_debug_flag(ap)
    return ap


def build_markup_parser(command: str) -> argparse.ArgumentParser:
    descriptions = {
        "strip": "Remove every tag and reading from markup, leaving plain text.",
        "hide-readings": "Empty every <rt> while keeping word spans and ruby structure.",
        "words": "List the words (span contents) found in markup, one per line.",
    }
    ap = argparse.ArgumentParser(prog=f"yomi {command}", description=descriptions[command])
    _add_version_flag(ap)
    _add_text_argument(ap, "Annotated markup.")
    return ap


def build_upgrade_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi upgrade",
        description=(
            "Re-segment model-generated furigana HTML into canonical markup, "
            "reusing the readings it carried."
        ),
    )
    _add_version_flag(ap)
    _add_text_argument(ap, "Legacy markup.")
    _add_reading_options(ap)
    _add_debug_flag(ap)
    return ap


def build_web_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi web",
        description="Serve the annotation API and a small browser demo.",
    )
    _add_version_flag(ap)
    ap.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface for the web server (default: 127.0.0.1).",
    )
    ap.add_argument(
        "--port",
        type=int,
        default=8765,
        help="Port for the web server (default: 8765).",
    )
    ap.add_argument(
        "--max-chars",
        type=int,
        default=5000,
        help="Longest text accepted by /api/annotate (default: 5000).",
    )
    _add_reading_options(ap)
    _add_debug_flag(ap)
    return ap


def build_tools_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="yomi tools", description="yomi helper utilities")
    _add_version_flag(ap)
    subparsers = ap.add_subparsers(dest="tool_cmd")

    install = subparsers.add_parser(
        "install-unidic",
        help="Download and register UniDic 3.1.1 inside the current virtualenv.",
    )
    install.add_argument(
        "--zip",
        help="Path to a previously downloaded unidic-cwj-3.1.1 zip archive.",
    )
    install.add_argument(
        "--url",
        default=DEFAULT_UNIDIC_URL,
        help="Download URL for the UniDic archive (default: %(default)s).",
    )
    install.add_argument(
        "--force",
        action="store_true",
        help="Reinstall even if the requested version already exists.",
    )

    subparsers.add_parser(
        "unidic-status",
        help="Show the currently detected UniDic dictionary path.",
    )

    return ap


def _input_text(args: argparse.Namespace) -> str:
    if args.text:
        text = " ".join(args.text)
    else:
        text = sys.stdin.read()
    if not text.strip():
        raise SystemExit("No text provided.")
    return text


def _emit(text: str) -> None:
    sys.stdout.write(text)
    if not text.endswith("\n"):
        sys.stdout.write("\n")


def _lookup_from_args(args: argparse.Namespace) -> ReadingLookup | None:
    readings_path = Path(args.readings).expanduser() if args.readings else None
    try:
        return build_reading_lookup(readings_path=readings_path, backend=args.backend)
    except (ValueError, NLPBackendUnavailableError) as exc:
        raise SystemExit(str(exc)) from exc


def _run_annotate(args: argparse.Namespace) -> int:
    text = _input_text(args)
    tokens = analyze(text, _lookup_from_args(args))
    if args.check:
        try:
            markup = check_round_trip(tokens)
        except ValueError as exc:
            raise SystemExit(f"Round trip failed: {exc}") from exc
    else:
        markup = encode(tokens)
    _emit(markup)
    return 0


def _run_tokens(args: argparse.Namespace) -> int:
    text = _input_text(args)
    tokens = analyze(text, _lookup_from_args(args))
    if args.json:
        print(json.dumps(serialize_tokens(tokens), ensure_ascii=False, indent=2))
        return 0
    table = Table(title=f"{len(tokens)} tokens")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Text")
    table.add_column("Readings")
    for idx, token in enumerate(tokens):
        readings = " ".join(
            f"{segment.surface}:{segment.reading}"
            for segment in token.reading_segments
            if segment.annotated
        )
        table.add_row(str(idx), token.kind.value, escape(repr(token.text)[1:-1]), escape(readings))
    Console().print(table)
    return 0


def _run_markup(command: str, args: argparse.Namespace) -> int:
    markup = _input_text(args)
    if command == "strip":
        _emit(strip_annotations(markup))
    elif command == "hide-readings":
        _emit(strip_readings_only(markup))
    else:
        for word in extract_words(markup):
            print(word)
    return 0


def _run_upgrade(args: argparse.Namespace) -> int:
    html = _input_text(args)
    _emit(upgrade_legacy_markup(html, _lookup_from_args(args)))
    return 0


def _run_tools(args: argparse.Namespace) -> int:
    if not args.tool_cmd:
        raise SystemExit("A tools subcommand is required. Use --help for options.")

    if args.tool_cmd == "install-unidic":
        try:
            status = ensure_unidic_installed(url=args.url, zip_path=args.zip, force=args.force)
        except UniDicInstallError as exc:
            raise SystemExit(str(exc)) from exc
        print(f"UniDic {status.version} installed at {status.path}")
        print(f"Set {UNIDIC_ENV_VAR} to override or rerun 'yomi tools install-unidic' to reinstall.")
        return 0

    if args.tool_cmd == "unidic-status":
        status = resolve_unidic()
        if status.path is not None:
            print(f"UniDic path: {status.path} ({status.source})")
            print(f"Version: {status.version or 'unknown'}")
        else:
            print("No UniDic installation detected. Use 'yomi tools install-unidic'.")
        env_dir = os.environ.get(UNIDIC_ENV_VAR)
        if env_dir:
            print(f"{UNIDIC_ENV_VAR} is set to: {env_dir}")
        return 0

    raise SystemExit(f"Unknown tools subcommand: {args.tool_cmd}")


def _run_web(args: argparse.Namespace) -> None:
    config = WebConfig(
        host=args.host,
        port=args.port,
        readings_path=Path(args.readings).expanduser().resolve() if args.readings else None,
        backend=args.backend,
        max_chars=args.max_chars,
    )
    app = create_app(config, _lookup_from_args(args))
    print(f"Web URL: http://{config.host}:{config.port}/")
    print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="debug" if args.debug else "info",
        log_config=build_uvicorn_log_config(debug=args.debug),
    )


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    command = argv[0] if argv else None
    if command in MARKUP_COMMANDS:
        markup_args = build_markup_parser(command).parse_args(argv[1:])
        return _run_markup(command, markup_args)
    if command == "tools":
        tools_args = build_tools_parser().parse_args(argv[1:])
        return _run_tools(tools_args)

    if command == "tokens":
        args = build_tokens_parser().parse_args(argv[1:])
        runner = _run_tokens
    elif command == "upgrade":
        args = build_upgrade_parser().parse_args(argv[1:])
        runner = _run_upgrade
    elif command == "web":
        args = build_web_parser().parse_args(argv[1:])
        set_debug_logging(args.debug)
        _run_web(args)
        return 0
    else:
        if command == "annotate":
            argv = argv[1:]
        args = build_parser().parse_args(argv)
        runner = _run_annotate
    set_debug_logging(args.debug)
    return runner(args)


if __name__ == "__main__":
    raise SystemExit(main())
