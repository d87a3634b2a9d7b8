"""Script execution bridge.

Turns one runnable command plus its call-site values into an environment and
replaces the current process with the command's cached script.

Environment layering (later entries win):
1. Inherited process environment
2. Context variables (POHOME/POPATH)
3. Document ``environment``, then the command's own ``environment``
4. One variable per argument definition, bound to its slot (space-joined)
5. ``ARGS``: every positional argument, space-joined, in command-line order
6. One variable per flag that was set or declares a non-empty default
   (a ``false`` boolean contributes nothing)
7. ``FLAGS``: every contributing flag rendered as ``<flags_prefix><value>``,
   a ``true`` boolean rendering as its bare prefix

The hand-off is terminal: ``os.execve`` never returns on success, so the script
cache write and every logging handler are flushed before it.
"""
from __future__ import annotations

import logging
import os
import shlex
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional, Sequence, Tuple

from po.core.arity import fill_slots
from po.core.config.cache import ScriptCache
from po.core.config.models import ArgumentDef, FlagDef, format_flag_value, parse_flag_value
from po.core.exceptions import ExecutionError
from po.core.stdlib_logging import shutdown_handlers

logger = logging.getLogger(__name__)

DEFAULT_INTERPRETER = "/bin/sh"
ARGS_ENV = "ARGS"
FLAGS_ENV = "FLAGS"

Execve = Callable[[str, List[str], Dict[str, str]], Any]


@dataclass(frozen=True, slots=True)
class ScriptSpec:
    """Everything needed to run one command, captured at materialization time."""

    name: str
    script: str
    interpreter: str = DEFAULT_INTERPRETER
    arguments: Tuple[ArgumentDef, ...] = ()
    flags: Tuple[FlagDef, ...] = ()
    variables: Tuple[Tuple[str, str], ...] = ()


def build_script(interpreter: str, script: str) -> str:
    """Full script text: an interpreter declaration followed by the body."""
    return f"#! {interpreter or DEFAULT_INTERPRETER}\n{script}"


def effective_flag_values(
    flags: Sequence[FlagDef], explicit: Mapping[str, Any]
) -> List[Tuple[FlagDef, Any]]:
    """Return ``(flag, typed value)`` for every flag that was set or has a default.

    Flags are visited in sorted name order. A flag declared without a default
    (or with an empty one) is skipped until it is set explicitly.
    """
    out: List[Tuple[FlagDef, Any]] = []
    for flag in sorted(flags, key=lambda f: f.name):
        if flag.name in explicit:
            out.append((flag, explicit[flag.name]))
        elif flag.default:
            out.append((flag, parse_flag_value(flag.value_type, flag.default)))
    return out


def _flags_item(flag: FlagDef, value: Any) -> Optional[str]:
    if flag.value_type == "bool":
        return flag.prefix.strip() if value else None
    return (flag.prefix + format_flag_value(value)).strip()


def build_environment(
    spec: ScriptSpec,
    positional: Sequence[str],
    flag_values: Mapping[str, Any],
    *,
    base_env: Optional[Mapping[str, str]] = None,
    context: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Assemble the environment a command script runs with.

    Args:
        spec: The command being run
        positional: Positional arguments, already arity-checked
        flag_values: Typed values of the flags set explicitly on the command line
        base_env: Inherited environment (default: ``os.environ``)
        context: Context variables layered before the document variables
    """
    env: Dict[str, str] = dict(os.environ if base_env is None else base_env)
    env.update(context or {})
    env.update(dict(spec.variables))

    for definition, slot in zip(spec.arguments, fill_slots(spec.arguments, positional)):
        env[definition.name] = " ".join(slot)
    env[ARGS_ENV] = " ".join(positional)

    items: List[str] = []
    for flag, value in effective_flag_values(spec.flags, flag_values):
        if flag.value_type == "bool" and not value:
            continue
        env[flag.name] = format_flag_value(value)
        item = _flags_item(flag, value)
        if item:
            items.append(item)
    env[FLAGS_ENV] = " ".join(items)

    return env


def _check_interpreter(interpreter: str) -> None:
    try:
        program = shlex.split(interpreter)[0]
    except (ValueError, IndexError) as exc:
        raise ExecutionError(f"invalid interpreter: {interpreter!r}") from exc
    if os.path.isabs(program) and not os.access(program, os.X_OK):
        raise ExecutionError(
            f"interpreter not found or not executable: {program}",
            context={"interpreter": interpreter},
        )


def _flush_before_exec() -> None:
    shutdown_handlers()
    sys.stdout.flush()
    sys.stderr.flush()


def run(
    spec: ScriptSpec,
    positional: Sequence[str],
    flag_values: Mapping[str, Any],
    *,
    cache: ScriptCache,
    context: Optional[Mapping[str, str]] = None,
    execve: Optional[Execve] = None,
) -> NoReturn:
    """Replace the current process with ``spec``'s script.

    Raises:
        ExecutionError: If the interpreter is missing, the script cannot be
            cached, or the exec itself fails. Never retried.
    """
    interpreter = spec.interpreter or DEFAULT_INTERPRETER
    _check_interpreter(interpreter)

    env = build_environment(spec, positional, flag_values, context=context)
    text = build_script(interpreter, spec.script)

    try:
        path = cache.ensure(text)
    except OSError as exc:
        raise ExecutionError(
            f"cannot write script cache {cache.directory}: {exc.strerror or exc}",
            context={"command": spec.name},
        ) from exc

    logger.debug("exec %s for command %s", path, spec.name)
    _flush_before_exec()

    do_exec = execve or os.execve
    try:
        do_exec(str(path), [str(path)], env)
    except OSError as exc:
        raise ExecutionError(
            f"cannot execute {path}: {exc.strerror or exc}",
            context={"command": spec.name, "script": str(path)},
        ) from exc
    raise ExecutionError(f"exec of {path} returned", context={"command": spec.name})


__all__ = [
    "ARGS_ENV",
    "DEFAULT_INTERPRETER",
    "FLAGS_ENV",
    "ScriptSpec",
    "build_environment",
    "build_script",
    "effective_flag_values",
    "run",
]
