"""Materialize a merged document into an immutable, invocable command graph.

Every declared command, nested ones included, becomes one node keyed by its
full name (ancestors joined with ``:``, e.g. ``group:subtask``). Nodes carry a
usage line derived from argument arity, typed flag bindings, the aliases that
target them, and, for commands with a script, a runner bound to that node's
own script spec.

The graph is built once per invocation and is not mutated afterwards; the CLI
front-end receives it explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from po.core.arity import check_count, format_usage
from po.core.config.cache import CacheStore, ScriptCache
from po.core.config.models import (
    ArgumentDef,
    CommandDef,
    Document,
    FlagDef,
    parse_flag_value,
    validate_command_name,
)
from po.core.exceptions import ExecutionError, ValidationError
from po.core.execution import DEFAULT_INTERPRETER, ScriptSpec, run

logger = logging.getLogger(__name__)

SEPARATOR = ":"

Runner = Callable[[Sequence[str], Mapping[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class FlagBinding:
    """A declared flag converted to a typed, defaulted binding."""

    name: str
    value_type: str
    short: str
    description: str
    default: Any
    prefix: str

    @classmethod
    def from_def(cls, flag: FlagDef, *, command: str) -> FlagBinding:
        default: Any = None
        if flag.default:
            try:
                default = parse_flag_value(flag.value_type, flag.default)
            except ValueError as exc:
                raise ValidationError(
                    f"invalid default {flag.default!r} for {flag.value_type} flag "
                    f"'{flag.name}' of command '{command}'",
                    context={"command": command, "flag": flag.name},
                ) from exc
        elif flag.value_type == "bool":
            default = False
        return cls(
            name=flag.name,
            value_type=flag.value_type,
            short=flag.short,
            description=flag.description,
            default=default,
            prefix=flag.prefix,
        )


@dataclass(frozen=True, slots=True)
class MaterializedCommand:
    """One invocable node of the command graph."""

    name: str
    definition: CommandDef
    usage: str
    aliases: Tuple[str, ...] = ()
    flags: Tuple[FlagBinding, ...] = ()
    children: Tuple[str, ...] = ()
    parent: Optional[str] = None
    runner: Optional[Runner] = None

    @property
    def short(self) -> str:
        return self.definition.short

    @property
    def long(self) -> str:
        return self.definition.long

    @property
    def example(self) -> str:
        return self.definition.example

    @property
    def arguments(self) -> Tuple[ArgumentDef, ...]:
        return self.definition.arguments

    @property
    def is_runnable(self) -> bool:
        return self.runner is not None

    @property
    def is_group(self) -> bool:
        return bool(self.children)

    def check_arguments(self, positional: Sequence[str]) -> None:
        """Raise ArityMismatchError when ``positional`` does not fit the arity."""
        check_count(self.arguments, len(positional))

    def invoke(self, positional: Sequence[str], flag_values: Mapping[str, Any]) -> Any:
        """Check arity, then hand off to the runner (does not return on success)."""
        self.check_arguments(positional)
        if self.runner is None:
            raise ExecutionError(f"command '{self.name}' has no script", context={"command": self.name})
        return self.runner(list(positional), dict(flag_values))


class CommandGraph:
    """Read-only mapping of full command names to materialized commands."""

    def __init__(
        self,
        commands: Mapping[str, MaterializedCommand],
        aliases: Mapping[str, str],
    ) -> None:
        self._commands = MappingProxyType(dict(commands))
        self._aliases = MappingProxyType(dict(aliases))

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._commands))

    def __len__(self) -> int:
        return len(self._commands)

    def __getitem__(self, name: str) -> MaterializedCommand:
        return self._commands[name]

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def get(self, name: str) -> Optional[MaterializedCommand]:
        return self._commands.get(name)

    def resolve(self, token: str) -> Optional[MaterializedCommand]:
        """Look ``token`` up as a full command name first, then as an alias."""
        command = self._commands.get(token)
        if command is not None:
            return command
        target = self._aliases.get(token)
        if target is None:
            return None
        return self._commands.get(target)

    def root_commands(self) -> List[MaterializedCommand]:
        return [self._commands[n] for n in sorted(self._commands) if self._commands[n].parent is None]

    def children(self, name: str) -> List[MaterializedCommand]:
        """Direct children of ``name`` (grandchildren excluded)."""
        command = self._commands.get(name)
        if command is None:
            return []
        return [self._commands[child] for child in command.children]


def _validate_tree(commands: Mapping[str, CommandDef]) -> None:
    for name, command in commands.items():
        validate_command_name(name)
        _validate_tree(command.children)


def _validate_flags(name: str, command: CommandDef) -> None:
    shorts: Dict[str, str] = {}
    for flag in command.flags.values():
        if not flag.short:
            continue
        if flag.short in shorts:
            raise ValidationError(
                f"flags '{shorts[flag.short]}' and '{flag.name}' of command '{name}' "
                f"share the short alias -{flag.short}",
                context={"command": name, "short": flag.short},
            )
        shorts[flag.short] = flag.name


def _make_runner(
    name: str,
    command: CommandDef,
    document: Document,
    *,
    script_cache: Optional[ScriptCache],
    context: Optional[Mapping[str, str]],
) -> Optional[Runner]:
    if not command.script:
        return None

    variables = {**document.variables, **command.environment}
    spec = ScriptSpec(
        name=name,
        script=command.script,
        interpreter=command.interpreter or DEFAULT_INTERPRETER,
        arguments=command.arguments,
        flags=tuple(command.flags[k] for k in sorted(command.flags)),
        variables=tuple(variables.items()),
    )
    if script_cache is None:
        script_cache = CacheStore().scripts
    return partial(run, spec, cache=script_cache, context=dict(context or {}))


def _materialize_node(
    out: Dict[str, MaterializedCommand],
    name: str,
    command: CommandDef,
    document: Document,
    *,
    parent: Optional[str],
    script_cache: Optional[ScriptCache],
    context: Optional[Mapping[str, str]],
) -> None:
    _validate_flags(name, command)

    child_names = tuple(f"{name}{SEPARATOR}{child}" for child in sorted(command.children))
    for child, full_name in zip(sorted(command.children), child_names):
        _materialize_node(
            out,
            full_name,
            command.children[child],
            document,
            parent=name,
            script_cache=script_cache,
            context=context,
        )

    out[name] = MaterializedCommand(
        name=name,
        definition=command,
        usage=format_usage(name, command.arguments),
        aliases=document.aliases_for(name),
        flags=tuple(
            FlagBinding.from_def(command.flags[k], command=name) for k in sorted(command.flags)
        ),
        children=child_names,
        parent=parent,
        runner=_make_runner(name, command, document, script_cache=script_cache, context=context),
    )


def materialize(
    document: Optional[Document],
    *,
    script_cache: Optional[ScriptCache] = None,
    context: Optional[Mapping[str, str]] = None,
) -> CommandGraph:
    """Build the command graph for ``document`` (an absent document yields an empty graph).

    Args:
        document: The merged, import-resolved document
        script_cache: Where runners materialize scripts (default: the user cache)
        context: Variables layered under the document's own (POHOME/POPATH)

    Raises:
        ValidationError: For any invalid name, flag or default anywhere in the
            tree; the whole graph fails, not just the offending node.
    """
    if document is None:
        return CommandGraph({}, {})

    _validate_tree(document.commands)
    for alias in document.aliases:
        validate_command_name(alias)

    commands: Dict[str, MaterializedCommand] = {}
    for name in sorted(document.commands):
        _materialize_node(
            commands,
            name,
            document.commands[name],
            document,
            parent=None,
            script_cache=script_cache,
            context=context,
        )

    aliases: Dict[str, str] = {}
    for alias, target in sorted(document.aliases.items()):
        if target not in commands:
            logger.warning("alias '%s' targets unknown command '%s'; ignoring", alias, target)
            continue
        aliases[alias] = target

    return CommandGraph(commands, aliases)


__all__ = ["SEPARATOR", "CommandGraph", "FlagBinding", "MaterializedCommand", "materialize"]
