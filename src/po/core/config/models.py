"""Document model.

Immutable dataclasses for one parsed (or merged) ``po.yml`` document.
Construction from a raw YAML mapping validates command names and arity
bounds; structural validation against the bundled schema happens in
``po.core.schemas`` before these constructors run.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from po.core.arity import validate_bounds
from po.core.exceptions import CommandNameError, ImportReferenceError, UnknownFlagTypeError

# A letter, then letters, digits, '-' or '_' (unicode-aware).
COMMAND_NAME_RE = re.compile(r"^[^\W\d_][\w-]*$")

FLAG_TYPES = ("string", "int", "bool")
DEFAULT_FLAG_TYPE = "string"


def validate_command_name(name: str) -> None:
    if not isinstance(name, str) or not COMMAND_NAME_RE.match(name):
        raise CommandNameError(f"invalid command name: {name}", context={"name": name})


_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(raw: str) -> bool:
    """Parse the boolean spellings accepted on the command line."""
    if raw in _TRUE_STRINGS:
        return True
    if raw in _FALSE_STRINGS:
        return False
    raise ValueError(f"invalid boolean value: {raw!r}")


def parse_flag_value(value_type: str, raw: str) -> Any:
    """Convert a raw string to the typed value of a ``string``/``int``/``bool`` flag."""
    if value_type == "int":
        return int(raw.strip())
    if value_type == "bool":
        return parse_bool(raw.strip())
    return raw


def format_flag_value(value: Any) -> str:
    """Render a typed flag value for the environment."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def scalar_to_str(value: Any) -> str:
    """Stringify a YAML scalar the way shells expect (``true``/``false`` for bools)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True, slots=True)
class ArgumentDef:
    """A named positional slot.

    Attributes:
        name: Variable name exported to the script
        description: Help text
        min_count: Minimum tokens consumed (>= 0)
        max_count: Maximum tokens consumed; None means unbounded
    """

    name: str
    description: str = ""
    min_count: int = 1
    max_count: Optional[int] = 1

    def __post_init__(self) -> None:
        validate_bounds(self.min_count, self.max_count, name=self.name)

    @property
    def optional(self) -> bool:
        return self.min_count == 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ArgumentDef:
        """Build from ``{var, desc, optional, amount: {at_least, at_most}}``.

        Defaults: no amount -> exactly one; only ``at_least`` -> unbounded;
        only ``at_most`` -> at least one; ``optional`` forces a zero minimum.
        """
        amount = data.get("amount") or {}
        at_least = amount.get("at_least")
        at_most = amount.get("at_most")

        min_count = 1 if at_least is None else int(at_least)
        if at_least is None and at_most is None:
            max_count: Optional[int] = 1
        elif at_most is None:
            max_count = None
        else:
            max_count = int(at_most)

        if data.get("optional"):
            min_count = 0

        return cls(
            name=str(data.get("var", "")),
            description=str(data.get("desc") or ""),
            min_count=min_count,
            max_count=max_count,
        )


@dataclass(frozen=True, slots=True)
class FlagDef:
    """A named, typed flag.

    ``exposed_prefix`` controls how the flag is rendered in the combined
    ``FLAGS`` value; None means ``--<name> ``.
    """

    name: str
    value_type: str = DEFAULT_FLAG_TYPE
    short: str = ""
    description: str = ""
    default: Optional[str] = None
    exposed_prefix: Optional[str] = None

    def __post_init__(self) -> None:
        if self.value_type not in FLAG_TYPES:
            raise UnknownFlagTypeError(
                f"no such type: {self.value_type}",
                context={"flag": self.name, "type": self.value_type},
            )

    @property
    def prefix(self) -> str:
        if self.exposed_prefix is None:
            return f"--{self.name} "
        return self.exposed_prefix

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> FlagDef:
        raw_default = data.get("default")
        raw_prefix = data.get("flags_prefix")
        return cls(
            name=name,
            value_type=str(data.get("type") or DEFAULT_FLAG_TYPE),
            short=str(data.get("short") or ""),
            description=str(data.get("desc") or ""),
            default=None if raw_default is None else scalar_to_str(raw_default),
            exposed_prefix=None if raw_prefix is None else str(raw_prefix),
        )


@dataclass(frozen=True, slots=True)
class ImportRef:
    """Reference to another document; exactly one of ``file``/``url`` is set."""

    file: str = ""
    url: str = ""

    def validate(self) -> None:
        if not self.file and not self.url:
            raise ImportReferenceError("import requires a 'url' or 'file' key set")
        if self.file and self.url:
            raise ImportReferenceError(
                "import cannot have both a 'url' and 'file' key set",
                context={"file": self.file, "url": self.url},
            )

    @property
    def is_url(self) -> bool:
        return bool(self.url)

    @property
    def locator(self) -> str:
        return self.url or self.file

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ImportRef:
        return cls(file=str(data.get("file") or ""), url=str(data.get("url") or ""))


@dataclass(frozen=True, slots=True)
class CommandDef:
    """One node of the declared command tree."""

    short: str = ""
    long: str = ""
    example: str = ""
    interpreter: str = ""
    script: str = ""
    arguments: Tuple[ArgumentDef, ...] = ()
    flags: Dict[str, FlagDef] = field(default_factory=dict)
    environment: Dict[str, str] = field(default_factory=dict)
    children: Dict[str, "CommandDef"] = field(default_factory=dict)

    @property
    def is_group(self) -> bool:
        return bool(self.children)

    @property
    def is_runnable(self) -> bool:
        return bool(self.script)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> CommandDef:
        data = data or {}
        children: Dict[str, CommandDef] = {}
        for name, child in (data.get("commands") or {}).items():
            validate_command_name(name)
            children[name] = cls.from_mapping(child)

        return cls(
            short=str(data.get("short") or ""),
            long=str(data.get("long") or ""),
            example=str(data.get("example") or ""),
            interpreter=str(data.get("exec") or ""),
            script=str(data.get("script") or ""),
            arguments=tuple(ArgumentDef.from_mapping(a) for a in (data.get("args") or [])),
            flags={
                name: FlagDef.from_mapping(name, flag or {})
                for name, flag in (data.get("flags") or {}).items()
            },
            environment={
                str(k): scalar_to_str(v) for k, v in (data.get("environment") or {}).items()
            },
            children=children,
        )


@dataclass(frozen=True, slots=True)
class Document:
    """A configuration document (one source, or the merge of several)."""

    imports: Tuple[ImportRef, ...] = ()
    aliases: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, str] = field(default_factory=dict)
    commands: Dict[str, CommandDef] = field(default_factory=dict)

    def aliases_for(self, full_name: str) -> Tuple[str, ...]:
        """Return alias names whose target is ``full_name``, sorted."""
        return tuple(sorted(alias for alias, target in self.aliases.items() if target == full_name))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Document:
        """Build a document, validating import refs, alias and command names."""
        data = data or {}

        imports = tuple(ImportRef.from_mapping(i or {}) for i in (data.get("imports") or []))
        for ref in imports:
            ref.validate()

        aliases = {str(k): str(v) for k, v in (data.get("aliases") or {}).items()}
        for alias in aliases:
            validate_command_name(alias)

        commands: Dict[str, CommandDef] = {}
        for name, command in (data.get("commands") or {}).items():
            validate_command_name(name)
            commands[name] = CommandDef.from_mapping(command)

        return cls(
            imports=imports,
            aliases=aliases,
            variables={
                str(k): scalar_to_str(v) for k, v in (data.get("environment") or {}).items()
            },
            commands=commands,
        )


__all__ = [
    "COMMAND_NAME_RE",
    "FLAG_TYPES",
    "ArgumentDef",
    "FlagDef",
    "ImportRef",
    "CommandDef",
    "Document",
    "format_flag_value",
    "parse_bool",
    "parse_flag_value",
    "scalar_to_str",
    "validate_command_name",
]
