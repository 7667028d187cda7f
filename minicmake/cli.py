"""Command line interface for minicmake."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Dict, Iterable, List
import sys

from .config_loader import ProjectConfig
from .diagnostics import Diagnostics
from .errors import ConfigurationError, ScriptNotFoundError
from .platforms import detect_profile, get_profile
from .session import (
    DEFAULT_C_STANDARD,
    DEFAULT_COMPILER,
    DEFAULT_OUTPUT,
    DEFAULT_SCRIPT,
    Session,
    SessionOptions,
)


def _parse_definitions(values: Iterable[str]) -> Dict[str, str]:
    definitions: Dict[str, str] = {}
    for raw in values:
        if not raw:
            continue
        key, separator, value = raw.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid definition '{raw}': expected KEY=VALUE")
        definitions[key] = value if separator else "ON"
    return definitions


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(
        prog="minicmake",
        description="Translate a CMakeLists.txt subset into a Makefile",
    )
    parser.add_argument("-S", "--source-dir", default=".", metavar="DIR", help="Directory holding the root script")
    parser.add_argument("-f", "--file", dest="script", help=f"Root script name (default: {DEFAULT_SCRIPT})")
    parser.add_argument("-o", "--output", help=f"Generated build file (default: {DEFAULT_OUTPUT})")
    parser.add_argument("-c", "--config", help="Configuration file (default: minicmake.toml/.json/.yaml if present)")
    parser.add_argument(
        "-D",
        dest="definitions",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Set a variable before the script runs (repeatable)",
    )
    parser.add_argument("--platform", help="Target platform: linux, darwin or windows (default: host)")
    parser.add_argument("--compiler", help=f"C compiler (default: {DEFAULT_COMPILER})")
    parser.add_argument("--c-standard", help=f"Initial CMAKE_C_STANDARD (default: {DEFAULT_C_STANDARD})")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print the build file instead of writing it")
    parser.add_argument("--list-targets", action="store_true", help="List declared targets instead of writing the build file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Trace interpreter decisions on stderr")
    return parser.parse_args(list(argv))


def _build_options(args: Namespace, source_dir: Path, config: ProjectConfig) -> SessionOptions:
    platform_name = args.platform or config.platform
    platform = get_profile(platform_name) if platform_name else detect_profile()
    variables: Dict[str, str] = dict(config.variables)
    variables.update(_parse_definitions(args.definitions))
    return SessionOptions(
        source_dir=source_dir,
        platform=platform,
        compiler=args.compiler or config.compiler or DEFAULT_COMPILER,
        c_standard=args.c_standard or config.c_standard or DEFAULT_C_STANDARD,
        c_flags=config.c_flags or "",
        variables=variables,
    )


def _print_targets(session: Session) -> None:
    emitter = session.emitter()
    headers = ["Target", "Kind", "Artifact", "Sources", "Links"]
    rows: List[dict[str, str]] = []
    for target in session.targets:
        rows.append(
            {
                "Target": target.name,
                "Kind": target.kind.value,
                "Artifact": emitter.artifact(target),
                "Sources": str(len(target.sources)),
                "Links": " ".join(target.links) or "-",
            }
        )
    if not rows:
        print("No targets declared")
        return

    widths = {header: len(header) for header in headers}
    for row in rows:
        for header in headers:
            widths[header] = max(widths[header], len(row[header]))

    def _format(row: dict[str, str]) -> str:
        return "  ".join(row.get(header, "").ljust(widths[header]) for header in headers).rstrip()

    print(_format({header: header for header in headers}))
    print("  ".join("-" * widths[header] for header in headers))
    for row in rows:
        print(_format(row))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    source_dir = Path(args.source_dir).resolve()

    try:
        explicit = Path(args.config) if args.config else None
        config = ProjectConfig.discover(source_dir, explicit)
        options = _build_options(args, source_dir, config)
    except (ConfigurationError, ValueError) as exc:
        print(f"Error: {exc}")
        return 2

    diagnostics = Diagnostics(verbose=args.verbose)
    session = Session(options, diagnostics=diagnostics)
    try:
        session.run(args.script or config.script or DEFAULT_SCRIPT)
    except ScriptNotFoundError as exc:
        print(f"Error: {exc}")
        return 1

    if args.list_targets:
        _print_targets(session)
        return 0
    if args.dry_run:
        sys.stdout.write(session.render_makefile())
        return 0

    try:
        output = session.write_makefile(Path(args.output or config.output or DEFAULT_OUTPUT))
    except OSError as exc:
        print(f"Error: cannot write Makefile: {exc}")
        return 1
    print(f"Wrote to {output.name}. Type 'make'")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
