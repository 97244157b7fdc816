"""Data model for Protocol Buffer definitions and transformation options."""

from __future__ import annotations

from dataclasses import dataclass, field

from go2proto.ct import Monoid, coalesce, unique


@dataclass
class ProtoField:
    name: str = ""
    type: str = ""
    number: int = 0
    repeated: bool = False
    optional: bool = False
    map_key: str = ""
    map_value: str = ""
    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoEnumValue:
    name: str
    number: int
    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoEnum:
    name: str
    values: list[ProtoEnumValue] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoMessage:
    name: str
    fields: list[ProtoField] = field(default_factory=list)
    nested: list[ProtoMessage] = field(default_factory=list)
    enums: list[ProtoEnum] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoRPC:
    name: str
    input_type: str = ""
    output_type: str = ""
    client_streaming: bool = False
    server_streaming: bool = False
    comments: list[str] = field(default_factory=list)


@dataclass
class ProtoService:
    name: str
    methods: list[ProtoRPC] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


@dataclass
class Proto:
    """A complete .proto file."""

    syntax: str = ""
    package: str = ""
    options: dict[str, str] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)
    enums: list[ProtoEnum] = field(default_factory=list)
    messages: list[ProtoMessage] = field(default_factory=list)
    services: list[ProtoService] = field(default_factory=list)


def _append_proto(a: Proto, b: Proto) -> Proto:
    return Proto(
        syntax=coalesce(a.syntax, b.syntax),
        package=coalesce(a.package, b.package),
        options={**a.options, **b.options},
        imports=unique([*a.imports, *b.imports]),
        enums=[*a.enums, *b.enums],
        messages=[*a.messages, *b.messages],
        services=[*a.services, *b.services],
    )


PROTO_MONOID: Monoid[Proto] = Monoid(lambda: Proto(syntax="proto3"), _append_proto)


@dataclass(frozen=True)
class TypeMapping:
    """The proto type for a Go type, and the file it needs imported."""

    proto: str
    import_path: str = ""


_TIMESTAMP = TypeMapping("google.protobuf.Timestamp", "google/protobuf/timestamp.proto")
_DURATION = TypeMapping("google.protobuf.Duration", "google/protobuf/duration.proto")
_ANY = TypeMapping("google.protobuf.Any", "google/protobuf/any.proto")

DEFAULT_TYPE_MAPPINGS: dict[str, TypeMapping] = {
    "string": TypeMapping("string"),
    "bool": TypeMapping("bool"),
    "int": TypeMapping("int64"),
    "int8": TypeMapping("int32"),
    "int16": TypeMapping("int32"),
    "int32": TypeMapping("int32"),
    "int64": TypeMapping("int64"),
    "uint": TypeMapping("uint64"),
    "uint8": TypeMapping("uint32"),
    "uint16": TypeMapping("uint32"),
    "uint32": TypeMapping("uint32"),
    "uint64": TypeMapping("uint64"),
    "float32": TypeMapping("float"),
    "float64": TypeMapping("double"),
    "byte": TypeMapping("uint32"),
    "rune": TypeMapping("int32"),
    "[]byte": TypeMapping("bytes"),
    "time.Time": _TIMESTAMP,
    "time.Duration": _DURATION,
    "error": TypeMapping("string"),
    "any": _ANY,
}


@dataclass
class TransformOptions:
    """Settings that steer the Go to proto transformation."""

    package_name: str = ""
    go_package: str = ""
    type_mappings: dict[str, TypeMapping] = field(
        default_factory=lambda: dict(DEFAULT_TYPE_MAPPINGS)
    )
    include_private: bool = False
    service_suffix: str = "Service"


def default_options() -> TransformOptions:
    """Options with the standard type mappings and service suffix."""
    return TransformOptions()