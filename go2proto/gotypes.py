"""Data model for Go declarations extracted from source."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

_BASIC_TYPES = frozenset({
    "bool", "string", "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
    "float32", "float64", "complex64", "complex128",
    "byte", "rune", "uintptr", "error", "any",
})


class ChanDir(enum.IntFlag):
    """Direction of a channel type."""

    SEND = 1
    RECV = 2
    BOTH = SEND | RECV


@dataclass(frozen=True)
class BasicType:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PointerType:
    elem: GoType

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True)
class SliceType:
    elem: GoType

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True)
class ArrayType:
    elem: GoType
    length: int = 0

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True)
class MapType:
    key: GoType
    value: GoType

    def __str__(self) -> str:
        return f"map[{self.key}]{self.value}"


@dataclass(frozen=True)
class NamedType:
    package: str
    name: str

    def __str__(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name


@dataclass(frozen=True)
class InterfaceType:
    methods: tuple[GoMethod, ...] = ()

    def __str__(self) -> str:
        return "interface{}"


@dataclass(frozen=True)
class StructType:
    fields: tuple[GoField, ...] = ()

    def __str__(self) -> str:
        return "struct{}"


@dataclass(frozen=True)
class ChanType:
    elem: GoType
    direction: ChanDir = ChanDir.BOTH

    def __str__(self) -> str:
        return f"chan {self.elem}"


@dataclass(frozen=True)
class FuncType:
    params: tuple[GoParam, ...] = ()
    results: tuple[GoParam, ...] = ()

    def __str__(self) -> str:
        return "func()"


GoType = Union[
    BasicType, PointerType, SliceType, ArrayType, MapType, NamedType,
    InterfaceType, StructType, ChanType, FuncType,
]


@dataclass(frozen=True)
class GoParam:
    """A function parameter or result; ``name`` is empty when unnamed."""

    type: GoType
    name: str = ""


@dataclass(frozen=True)
class GoMethod:
    name: str
    params: tuple[GoParam, ...] = ()
    results: tuple[GoParam, ...] = ()


@dataclass(frozen=True)
class GoField:
    name: str
    type: GoType
    tag: str = ""
    embedded: bool = False
    comments: tuple[str, ...] = ()
    exported: bool = True


@dataclass
class GoStruct:
    name: str
    fields: list[GoField] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    type_params: list[str] = field(default_factory=list)


@dataclass
class GoInterface:
    name: str
    methods: list[GoMethod] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class GoAlias:
    name: str
    underlying: GoType
    comments: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class GoConstValue:
    name: str
    value: int
    comments: list[str] = field(default_factory=list)


@dataclass
class GoConstGroup:
    type_name: str
    values: list[GoConstValue] = field(default_factory=list)


@dataclass
class GoPackage:
    path: str
    name: str
    structs: list[GoStruct] = field(default_factory=list)
    interfaces: list[GoInterface] = field(default_factory=list)
    aliases: list[GoAlias] = field(default_factory=list)
    consts: list[GoConstGroup] = field(default_factory=list)


def is_basic_type(name: str) -> bool:
    """Whether ``name`` is one of Go's predeclared types."""
    return name in _BASIC_TYPES


def type_name_from_go_type(go_type: GoType) -> str:
    """Name used for an embedded field: the named type, through pointers."""
    if isinstance(go_type, NamedType):
        return go_type.name
    if isinstance(go_type, PointerType):
        return type_name_from_go_type(go_type.elem)
    return ""