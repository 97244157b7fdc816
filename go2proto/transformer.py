"""Conversion of parsed Go declarations into proto definitions."""

from __future__ import annotations

import re
from typing import NamedTuple

from go2proto.ct import concat, fold_map, unique
from go2proto.gotypes import (
    ArrayType, BasicType, GoField, GoInterface, GoMethod, GoPackage, GoParam,
    GoStruct, GoType, MapType, NamedType, PointerType, SliceType,
)
from go2proto.protomodel import (
    PROTO_MONOID, Proto, ProtoEnum, ProtoEnumValue, ProtoField, ProtoMessage,
    ProtoRPC, ProtoService, TransformOptions, default_options,
)

_ANY = ("google.protobuf.Any", "google/protobuf/any.proto")
_EMPTY = ("google.protobuf.Empty", "google/protobuf/empty.proto")
_TIME = {
    "Time": ("google.protobuf.Timestamp", "google/protobuf/timestamp.proto"),
    "Duration": ("google.protobuf.Duration", "google/protobuf/duration.proto"),
}
_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")
_PROTOBUF_TAG = re.compile(r'protobuf:"([^"]+)"')
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_WIRE_TYPES = {"bytes": "bytes", "varint": "int64", "fixed64": "fixed64", "fixed32": "fixed32"}
_BASIC_PROTO_TYPES = frozenset(
    "string bool bytes int32 int64 uint32 uint64 sint32 sint64 "
    "fixed32 fixed64 sfixed32 sfixed64 float double".split()
)


class _TypeInfo(NamedTuple):
    proto_type: str
    imports: list[str]
    repeated: bool = False
    is_map: bool = False
    map_key: str = ""
    map_value: str = ""


def _with_import(pair: tuple[str, str]) -> _TypeInfo:
    return _TypeInfo(pair[0], [pair[1]])


class Transformer:
    """Turns Go packages into a single :class:`Proto` definition."""

    def __init__(self, options: TransformOptions | None = None) -> None:
        self.options = options if options is not None else default_options()

    def transform(self, pkgs: list[GoPackage]) -> Proto:
        """Combine the proto definitions of all packages."""
        return fold_map(pkgs, PROTO_MONOID, self._transform_package)

    def _transform_package(self, pkg: GoPackage) -> Proto:
        enum_lookup = {cg.type_name for cg in pkg.consts if len(cg.values) >= 2}
        enum_lookup.update(a.name for a in pkg.aliases if a.tags.get("go2proto:enum") == "true")

        base = Proto(
            syntax="proto3",
            package=self.options.package_name or to_proto_package(pkg.path),
            options={"go_package": self.options.go_package or pkg.path},
        )
        enums = Proto(enums=[
            ProtoEnum(name=cg.type_name, values=[
                ProtoEnumValue(to_enum_value_name(cg.type_name, cv.name), cv.value, list(cv.comments))
                for cv in cg.values
            ])
            for cg in pkg.consts if cg.type_name in enum_lookup
        ])
        messages = fold_map(pkg.structs, PROTO_MONOID, lambda s: self._transform_struct(s, enum_lookup))
        services = fold_map(pkg.interfaces, PROTO_MONOID, self._transform_interface)
        return concat(PROTO_MONOID, [base, enums, messages, services])

    def _transform_struct(self, s: GoStruct, enum_lookup: set[str]) -> Proto:
        if s.tags.get("go2proto") == "false" or (s.name and s.name[0].islower()):
            return PROTO_MONOID.empty()

        message = ProtoMessage(name=s.name, comments=filter_non_tag_comments(s.comments))
        imports: list[str] = []
        for f in s.fields:
            if (not f.exported and not self.options.include_private) or f.embedded:
                continue
            proto_field, field_imports = self._transform_field(
                f, len(message.fields) + 1, enum_lookup, set(s.type_params)
            )
            if proto_field.name:
                message.fields.append(proto_field)
                imports.extend(field_imports)
        return Proto(messages=[message], imports=unique(imports))

    def _transform_field(
        self, f: GoField, number: int, enum_lookup: set[str], type_params: set[str]
    ) -> tuple[ProtoField, list[str]]:
        tagged = parse_protobuf_tag(f.tag)
        if tagged is not None:
            return tagged, []
        info = self._transform_type(f.type, enum_lookup, type_params)
        return ProtoField(
            name=to_snake_case(f.name),
            type=info.proto_type,
            number=number,
            repeated=info.repeated,
            optional=isinstance(f.type, PointerType) and is_basic_proto_type(info.proto_type),
            map_key=info.map_key,
            map_value=info.map_value,
            comments=filter_non_tag_comments(f.comments),
        ), info.imports

    def _mapped(self, key: str) -> _TypeInfo | None:
        mapping = self.options.type_mappings.get(key)
        if mapping is None:
            return None
        return _TypeInfo(mapping.proto, [mapping.import_path] if mapping.import_path else [])

    def _transform_type(
        self, go_type: GoType, enum_lookup: set[str] = frozenset(), type_params: set[str] = frozenset()
    ) -> _TypeInfo:
        if isinstance(go_type, BasicType):
            return self._mapped(go_type.name) or _TypeInfo(go_type.name, [])
        if isinstance(go_type, PointerType):
            return self._transform_type(go_type.elem, enum_lookup, type_params)
        if isinstance(go_type, (SliceType, ArrayType)):
            if isinstance(go_type, SliceType) and go_type.elem == BasicType("byte"):
                return _TypeInfo("bytes", [])
            inner = self._transform_type(go_type.elem, enum_lookup, type_params)
            return _TypeInfo(inner.proto_type, inner.imports, repeated=True)
        if isinstance(go_type, MapType):
            key = self._transform_type(go_type.key, enum_lookup, type_params)
            value = self._transform_type(go_type.value, enum_lookup, type_params)
            return _TypeInfo(
                f"map<{key.proto_type}, {value.proto_type}>", key.imports + value.imports,
                is_map=True, map_key=key.proto_type, map_value=value.proto_type,
            )
        if not isinstance(go_type, NamedType):
            return _with_import(_ANY)
        if go_type.name in enum_lookup:
            return _TypeInfo(go_type.name, [])
        mapped = self._mapped(str(go_type))
        if mapped is not None:
            return mapped
        if go_type.package == "time" and go_type.name in _TIME:
            return _with_import(_TIME[go_type.name])
        if go_type.name in type_params or go_type.package:
            return _with_import(_ANY)
        return _TypeInfo(go_type.name, [])

    def _transform_interface(self, iface: GoInterface) -> Proto:
        if iface.tags.get("go2proto:service") != "true" and iface.tags.get("go2proto") != "service":
            return PROTO_MONOID.empty()

        service = ProtoService(name=iface.name, comments=filter_non_tag_comments(iface.comments))
        messages: list[ProtoMessage] = []
        imports: list[str] = []
        for method in iface.methods:
            rpc, request, response, method_imports = self._transform_method(method)
            service.methods.append(rpc)
            messages.extend(m for m in (request, response) if m is not None)
            imports.extend(method_imports)
        return Proto(services=[service], messages=messages, imports=unique(imports))

    def _transform_method(
        self, method: GoMethod
    ) -> tuple[ProtoRPC, ProtoMessage | None, ProtoMessage | None, list[str]]:
        rpc = ProtoRPC(name=method.name)
        imports: list[str] = []
        request = response = None

        params = [p for p in method.params if p.type != NamedType("context", "Context")]
        if len(params) == 1 and isinstance(params[0].type, NamedType):
            rpc.input_type = params[0].type.name
        elif params:
            request = self._build_message(f"{method.name}Request", params, "arg")
            rpc.input_type = request.name
        else:
            rpc.input_type = _EMPTY[0]
            imports.append(_EMPTY[1])

        results = [r for r in method.results if r.type != BasicType("error")]
        single = results[0].type if len(results) == 1 else None
        if isinstance(single, PointerType):
            single = single.elem
        if isinstance(single, NamedType):
            rpc.output_type = single.name
        elif results:
            response = self._build_message(f"{method.name}Response", results, "result")
            rpc.output_type = response.name
        else:
            rpc.output_type = _EMPTY[0]
            imports.append(_EMPTY[1])
        return rpc, request, response, imports

    def _build_message(self, name: str, params: list[GoParam], fallback: str) -> ProtoMessage:
        message = ProtoMessage(name=name)
        for number, param in enumerate(params, start=1):
            info = self._transform_type(param.type)
            message.fields.append(ProtoField(
                name=to_snake_case(param.name or f"{fallback}{number}"),
                type=info.proto_type,
                number=number,
                repeated=info.repeated,
                map_key=info.map_key if info.is_map else "",
                map_value=info.map_value if info.is_map else "",
            ))
        return message


def to_proto_package(go_path: str) -> str:
    """Derive a proto package name from a Go import path."""
    parts = go_path.split("/")
    host = next((i for i, part in enumerate(parts) if part in _HOSTS), None)
    if host is not None:
        parts = parts[host + 1:]
    return ".".join(parts).replace("-", "_")


def to_snake_case(s: str) -> str:
    """Convert a CamelCase identifier to snake_case, keeping acronyms whole."""
    out: list[str] = []
    prev_lower = False
    for i, ch in enumerate(s):
        if ch.isupper():
            if i > 0 and (prev_lower or (i + 1 < len(s) and s[i + 1].islower())):
                out.append("_")
            out.append(ch.lower())
            prev_lower = False
        else:
            out.append(ch)
            prev_lower = True
    return "".join(out)


def to_enum_value_name(type_name: str, value_name: str) -> str:
    """Upper-case enum value name, prefixed with the type name once."""
    upper_type = to_snake_case(type_name).upper()
    upper_value = to_snake_case(value_name).upper()
    return upper_value if upper_value.startswith(upper_type) else f"{upper_type}_{upper_value}"


def parse_protobuf_tag(tag: str) -> ProtoField | None:
    """Read a field from an existing ``protobuf:"..."`` struct tag, if any."""
    match = _PROTOBUF_TAG.search(tag.strip("`")) if tag else None
    if match is None:
        return None
    parts = match.group(1).split(",")
    if len(parts) < 3:
        return None
    number = _LEADING_INT.match(parts[1])
    proto_field = ProtoField(number=int(number.group(1)) if number else 0, type=_WIRE_TYPES.get(parts[0], ""))
    for part in parts[2:]:
        if part.startswith("name="):
            proto_field.name = part[len("name="):]
        proto_field.repeated = proto_field.repeated or part == "rep"
        proto_field.optional = proto_field.optional or part == "opt"
    return proto_field


def filter_non_tag_comments(comments: list[str]) -> list[str]:
    """Drop ``+tag`` directive lines from a comment block."""
    return [c for c in comments if not c.strip().startswith("+")]


def is_basic_proto_type(name: str) -> bool:
    """Whether ``name`` is a proto scalar type."""
    return name in _BASIC_PROTO_TYPES