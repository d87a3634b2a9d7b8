"""
Dispatcher for the po CLI.

The command graph is assembled from ``po.yml`` documents on every invocation,
so there is no static parser tree. The first token is resolved against the
graph (full name first, then alias) and a parser is built for just that
command. Root-level options (``-c``, ``--refresh``, ``--version``) are only
recognised when no command is named.

Exit statuses: 0 success, 1 usage or runtime failure, 2 configuration load
failure, 3 command materialization failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from po import __version__
from po.cli._output import (
    format_command_list,
    print_error,
    render_command_help,
    render_root_help,
)
from po.core.commands import CommandGraph, MaterializedCommand, materialize
from po.core.config import CacheStore, ConfigLoader
from po.core.config.models import parse_bool
from po.core.exceptions import PoError, UsageError
from po.core.stdlib_logging import configure_from_env

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUNTIME = 1
EXIT_LOAD = 2
EXIT_BUILD = 3

_HELP_DEST = "_po_help"
_ARGS_DEST = "_po_args"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing usage and exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _report(error: PoError, *, command: str = "") -> None:
    """Print ``error`` for the user and log its structured payload."""
    logger.debug("error payload: %s", json.dumps(error.to_json_error(), default=str))
    print_error(str(error), command=command)


class ParsedCommandLine(NamedTuple):
    positional: List[str]
    flags: Dict[str, Any]
    help: bool


def build_root_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="po", add_help=False, allow_abbrev=False)
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-c", "--commands", action="store_true")
    parser.add_argument("--refresh", action="store_true")
    parser.add_argument("--version", action="store_true")
    return parser


def build_command_parser(command: MaterializedCommand) -> argparse.ArgumentParser:
    """Build a parser for one command: positionals plus its declared flags.

    Flags default to ``argparse.SUPPRESS`` so that only flags present on the
    command line appear in the namespace; declared defaults are applied when
    the environment is built. ``-h``/``--help`` are dropped when a declared
    flag claims them.
    """
    parser = _ArgumentParser(prog=f"po {command.name}", add_help=False, allow_abbrev=False)

    taken = {f"--{f.name}" for f in command.flags} | {f"-{f.short}" for f in command.flags if f.short}
    help_opts = [opt for opt in ("-h", "--help") if opt not in taken]
    if help_opts:
        parser.add_argument(*help_opts, dest=_HELP_DEST, action="store_true")

    parser.add_argument(_ARGS_DEST, nargs="*", default=[], metavar="ARGS")

    for flag in command.flags:
        opts = [f"--{flag.name}"]
        if flag.short:
            opts.insert(0, f"-{flag.short}")
        if flag.value_type == "bool":
            parser.add_argument(
                *opts, dest=flag.name, action="store_const", const=True, default=argparse.SUPPRESS
            )
        else:
            parser.add_argument(
                *opts,
                dest=flag.name,
                type=int if flag.value_type == "int" else str,
                default=argparse.SUPPRESS,
                metavar=flag.value_type,
            )
    return parser


def _normalize_flag_tokens(
    tokens: Sequence[str], command: MaterializedCommand
) -> Tuple[List[str], Dict[str, bool]]:
    """Rewrite flag tokens into a form argparse accepts unambiguously.

    ``--flag=<bool>`` (and ``-f=<bool>``) are pulled out of ``tokens`` and
    returned as explicit values. A value flag followed by a separate token
    (``--name -x``, ``-n -x``) is joined into ``--name=-x``, so values that
    start with ``-`` are taken as values rather than options.
    """
    bool_options: Dict[str, str] = {}
    value_options: Dict[str, str] = {}
    for flag in command.flags:
        options = bool_options if flag.value_type == "bool" else value_options
        options[f"--{flag.name}"] = flag.name
        if flag.short:
            options[f"-{flag.short}"] = flag.name

    remaining: List[str] = []
    explicit: Dict[str, bool] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if token in value_options and i < len(tokens):
            remaining.append(f"--{value_options[token]}={tokens[i]}")
            i += 1
            continue
        opt, sep, raw = token.partition("=")
        if sep and opt in bool_options:
            try:
                explicit[bool_options[opt]] = parse_bool(raw)
            except ValueError as exc:
                raise UsageError(f'invalid argument "{raw}" for "{opt}" flag: {exc}') from exc
            continue
        remaining.append(token)
    return remaining, explicit


def parse_command_line(command: MaterializedCommand, tokens: Sequence[str]) -> ParsedCommandLine:
    """Parse the tokens following a command name.

    Flags and positionals may be intermixed; ``--`` ends flag parsing.

    Raises:
        UsageError: Unknown flag, missing flag value or unparsable typed value.
    """
    tokens = list(tokens)
    trailing: List[str] = []
    if "--" in tokens:
        split = tokens.index("--")
        tokens, trailing = tokens[:split], tokens[split + 1 :]

    tokens, flags = _normalize_flag_tokens(tokens, command)

    parser = build_command_parser(command)
    ns = vars(parser.parse_intermixed_args(tokens))

    help_requested = bool(ns.pop(_HELP_DEST, False))
    positional = list(ns.pop(_ARGS_DEST, None) or []) + trailing
    flags.update(ns)
    return ParsedCommandLine(positional=positional, flags=flags, help=help_requested)


def load_graph(cache: CacheStore) -> Tuple[Optional[CommandGraph], int]:
    """Load, merge and materialize the documents; report failures as exit codes."""
    loader = ConfigLoader(cache=cache)
    try:
        document = loader.load_all()
    except PoError as e:
        _report(e)
        return None, EXIT_LOAD

    try:
        graph = materialize(
            document, script_cache=cache.scripts, context=loader.context_environment()
        )
    except PoError as e:
        _report(e)
        return None, EXIT_BUILD
    return graph, EXIT_OK


def _run_root(argv: List[str], cache: CacheStore) -> int:
    try:
        args = build_root_parser().parse_args(argv)
    except UsageError as e:
        _report(e)
        return EXIT_RUNTIME

    if args.version:
        print(f"po {__version__}")
        return EXIT_OK

    if args.refresh:
        try:
            removed = cache.clear()
        except OSError as e:
            print_error(f"cannot clear cache {cache.root}: {e}")
            return EXIT_RUNTIME
        logger.info("removed %d cached files", len(removed))
        return EXIT_OK

    graph, code = load_graph(cache)
    if graph is None:
        return code

    if args.commands:
        sys.stdout.write(format_command_list(graph.root_commands()))
    else:
        sys.stdout.write(render_root_help(graph))
    return EXIT_OK


def _run_command(token: str, rest: List[str], cache: CacheStore) -> int:
    graph, code = load_graph(cache)
    if graph is None:
        return code

    command = graph.resolve(token)
    if command is None:
        print_error(f'unknown command "{token}"')
        return EXIT_RUNTIME

    try:
        parsed = parse_command_line(command, rest)
    except UsageError as e:
        _report(e, command=command.name)
        return EXIT_RUNTIME

    if parsed.help or not command.is_runnable:
        sys.stdout.write(render_command_help(command, graph))
        return EXIT_OK

    try:
        command.invoke(parsed.positional, parsed.flags)
    except PoError as e:
        _report(e, command=command.name)
        return EXIT_RUNTIME
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the po CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code; does not return at all when a command script takes over
        the process.
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    try:
        configure_from_env()
    except PoError as e:
        _report(e)
        return EXIT_RUNTIME
    cache = CacheStore()

    try:
        if not argv or argv[0].startswith("-"):
            return _run_root(argv, cache)
        return _run_command(argv[0], argv[1:], cache)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
