"""Text rendering for the po CLI: command lists, help pages, errors."""
from __future__ import annotations

import sys
from typing import Iterable, List, Sequence

from po.core.commands import CommandGraph, FlagBinding, MaterializedCommand
from po.core.config.models import format_flag_value

MIN_COMMAND_PADDING = 8


def _pad(names: Iterable[str]) -> int:
    return max([MIN_COMMAND_PADDING, *(len(n) for n in names)])


def format_command_list(commands: Sequence[MaterializedCommand], prefix: str = "") -> str:
    """One ``name  short`` line per command, names right-padded to a shared width."""
    padding = _pad(c.name for c in commands)
    return "".join(f"{prefix}{c.name.ljust(padding)}  {c.short}\n" for c in commands)


def format_flag_usages(flags: Sequence[FlagBinding]) -> str:
    rows: List[tuple[str, str]] = []
    for flag in flags:
        short = f"-{flag.short}, " if flag.short else "    "
        left = f"{short}--{flag.name}"
        if flag.value_type != "bool":
            left = f"{left} {flag.value_type}"
        right = flag.description
        if flag.default not in (None, False, ""):
            shown = format_flag_value(flag.default)
            if flag.value_type == "string":
                shown = f'"{shown}"'
            right = f"{right} (default {shown})".strip()
        rows.append((left, right))
    width = max((len(left) for left, _ in rows), default=0)
    return "".join(f"  {left.ljust(width)}   {right}".rstrip() + "\n" for left, right in rows)


def render_root_help(graph: CommandGraph) -> str:
    lines = [
        "CLI for managing project-specific scripts",
        "",
        "USAGE",
        "  po [COMMAND] [FLAGS]",
        "",
        "FLAGS",
        "  -c, --commands   list commands",
        "      --refresh    clear import and script caches",
        "      --version    print version",
        "  -h, --help       show this help",
        "",
        "COMMANDS",
    ]
    text = "\n".join(lines) + "\n"
    roots = graph.root_commands()
    if roots:
        return text + format_command_list(roots, "  ")
    return text + "  No commands found. Have you created a po.yml file?\n"


def render_command_help(command: MaterializedCommand, graph: CommandGraph) -> str:
    """Help page: description, then usage, aliases, arguments, flags, example, subcommands."""
    out: List[str] = []
    description = (command.long or command.short).strip("\n")
    out.append(f"{description}\n\n")

    if command.is_runnable:
        out.append(f"USAGE\n  po {command.usage} [FLAGS]\n")
        if command.aliases:
            out.append(f"\nALIASES\n  {', '.join(command.aliases)}\n")
        if command.arguments:
            padding = max(len(a.name) for a in command.arguments)
            out.append("\nARGUMENTS\n")
            out.extend(
                f"  {a.name.upper().ljust(padding)} {a.description}".rstrip() + "\n"
                for a in command.arguments
            )
        if command.flags:
            out.append("\nFLAGS\n")
            out.append(format_flag_usages(command.flags))
        if command.example:
            out.append("\nEXAMPLE\n")
            out.extend(f"  {line}\n" for line in command.example.rstrip(" \n").split("\n"))

    children = graph.children(command.name)
    if children:
        if command.is_runnable:
            out.append("\n")
        out.append("COMMANDS\n")
        out.append(format_command_list(children, "  "))

    return "".join(out)


def print_error(message: str, *, command: str = "") -> None:
    """Print a po error and the help hint to stderr."""
    path = f"po {command}" if command else "po"
    print(f"ERROR [{path}]: {message}", file=sys.stderr)
    print(f"Run '{path} --help' for usage.", file=sys.stderr)


__all__ = [
    "format_command_list",
    "format_flag_usages",
    "print_error",
    "render_command_help",
    "render_root_help",
]
