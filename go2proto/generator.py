"""Rendering of proto definitions to .proto text."""

from __future__ import annotations

import operator
from dataclasses import dataclass

from go2proto.ct import Monoid, concat, fold_map
from go2proto.protomodel import (
    Proto,
    ProtoEnum,
    ProtoField,
    ProtoMessage,
    ProtoRPC,
    ProtoService,
)


@dataclass(frozen=True)
class Code:
    """A block of generated lines."""

    lines: tuple[str, ...] = ()

    def __add__(self, other: Code) -> Code:
        return Code(self.lines + other.lines)

    def __str__(self) -> str:
        return "\n".join(self.lines)


CODE_MONOID: Monoid[Code] = Monoid(Code, operator.add)


def line(s: str) -> Code:
    """A block of a single line."""
    return Code((s,))


def blank() -> Code:
    """A block of one empty line."""
    return line("")


def indent(code: Code) -> Code:
    """Indent every non-empty line by two spaces."""
    return Code(tuple(f"  {text}" if text else "" for text in code.lines))


def comment(s: str) -> Code:
    """A comment line, or nothing for empty text."""
    return line(f"// {s}") if s else Code()


def _inner_comment(s: str) -> Code:
    return line(f"  // {s}")


class Generator:
    """Renders a :class:`Proto` into the text of a .proto file."""

    def generate(self, proto: Proto) -> str:
        code = concat(CODE_MONOID, [
            self._render_header(proto),
            blank(),
            self._render_package(proto),
            blank(),
            self._render_options(proto),
            self._render_imports(proto),
            fold_map(proto.enums, CODE_MONOID, self._render_enum),
            fold_map(proto.messages, CODE_MONOID, self._render_message),
            fold_map(proto.services, CODE_MONOID, self._render_service),
        ])
        return str(code)

    @staticmethod
    def _render_header(proto: Proto) -> Code:
        return line(f'syntax = "{proto.syntax or "proto3"}";')

    @staticmethod
    def _render_package(proto: Proto) -> Code:
        return line(f"package {proto.package};") if proto.package else Code()

    @staticmethod
    def _render_options(proto: Proto) -> Code:
        if not proto.options:
            return Code()
        options = fold_map(
            sorted(proto.options),
            CODE_MONOID,
            lambda key: line(f'option {key} = "{proto.options[key]}";'),
        )
        return options + blank()

    @staticmethod
    def _render_imports(proto: Proto) -> Code:
        if not proto.imports:
            return Code()
        imports = fold_map(
            sorted(proto.imports), CODE_MONOID, lambda imp: line(f'import "{imp}";')
        )
        return imports + blank()

    def _render_enum(self, enum: ProtoEnum) -> Code:
        values = fold_map(
            enum.values,
            CODE_MONOID,
            lambda v: fold_map(v.comments, CODE_MONOID, _inner_comment)
            + line(f"  {v.name} = {v.number};"),
        )
        return concat(CODE_MONOID, [
            fold_map(enum.comments, CODE_MONOID, comment),
            line(f"enum {enum.name} {{"),
            values,
            line("}"),
            blank(),
        ])

    def _render_message(self, message: ProtoMessage) -> Code:
        return concat(CODE_MONOID, [
            fold_map(message.comments, CODE_MONOID, comment),
            line(f"message {message.name} {{"),
            fold_map(message.enums, CODE_MONOID, lambda e: indent(self._render_enum(e))),
            fold_map(message.nested, CODE_MONOID, lambda m: indent(self._render_message(m))),
            fold_map(message.fields, CODE_MONOID, self._render_field),
            line("}"),
            blank(),
        ])

    @staticmethod
    def _render_field(f: ProtoField) -> Code:
        if f.map_key and f.map_value:
            text = f"  map<{f.map_key}, {f.map_value}> {f.name} = {f.number};"
        else:
            if f.repeated:
                prefix = "repeated "
            elif f.optional:
                prefix = "optional "
            else:
                prefix = ""
            text = f"  {prefix}{f.type} {f.name} = {f.number};"
        return fold_map(f.comments, CODE_MONOID, _inner_comment) + line(text)

    def _render_service(self, service: ProtoService) -> Code:
        return concat(CODE_MONOID, [
            fold_map(service.comments, CODE_MONOID, comment),
            line(f"service {service.name} {{"),
            fold_map(service.methods, CODE_MONOID, self._render_rpc),
            line("}"),
            blank(),
        ])

    @staticmethod
    def _render_rpc(rpc: ProtoRPC) -> Code:
        input_type = f"stream {rpc.input_type}" if rpc.client_streaming else rpc.input_type
        output_type = f"stream {rpc.output_type}" if rpc.server_streaming else rpc.output_type
        text = f"  rpc {rpc.name}({input_type}) returns ({output_type});"
        return fold_map(rpc.comments, CODE_MONOID, _inner_comment) + line(text)