"""Extraction of Go type declarations from source files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable

from go2proto.gotypes import (
    ArrayType,
    BasicType,
    ChanDir,
    ChanType,
    FuncType,
    GoAlias,
    GoConstGroup,
    GoConstValue,
    GoField,
    GoInterface,
    GoMethod,
    GoPackage,
    GoParam,
    GoStruct,
    GoType,
    InterfaceType,
    MapType,
    NamedType,
    PointerType,
    SliceType,
    StructType,
    is_basic_type,
    type_name_from_go_type,
)
from go2proto.lexer import LexError, Token, TokenKind, tokenize

_TYPE_STARTS = frozenset({
    "*", "[", "map", "chan", "func", "struct", "interface", "<-", "(", "...",
})
_VERSION_SEGMENT = re.compile(r"v\d+")


class ParseError(ValueError):
    """Raised when Go source cannot be parsed or packages cannot be found."""


def extract_comments(texts: Iterable[str] | None) -> list[str]:
    """Strip comment markers and surrounding space from raw comment texts."""
    if texts is None:
        return []
    result = []
    for text in texts:
        text = text.removeprefix("//").removeprefix("/*").removesuffix("*/")
        result.append(text.strip())
    return result


def extract_tags(comments: Iterable[str]) -> dict[str, str]:
    """Collect ``+key`` and ``+key=value`` directives from comment lines."""
    tags: dict[str, str] = {}
    for text in comments:
        text = text.strip()
        if not text.startswith("+"):
            continue
        key, sep, value = text[1:].partition("=")
        tags[key.strip()] = value.strip() if sep else "true"
    return tags


def _is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _ident_type(name: str) -> GoType:
    return BasicType(name) if is_basic_type(name) else NamedType("", name)


def _default_import_name(path: str) -> str:
    segments = path.split("/")
    name = segments[-1]
    if _VERSION_SEGMENT.fullmatch(name) and len(segments) > 1:
        name = segments[-2]
    return name.split(".")[0]


class _FileParser:
    """Parses one file, adding its declarations to a package."""

    def __init__(self, source: str, pkg: GoPackage,
                 const_groups: dict[str, GoConstGroup]) -> None:
        self._pkg = pkg
        self._groups = const_groups
        self._imports: dict[str, str] = {}
        self._tokens: list[Token] = []
        self._docs: dict[int, list[str]] = {}
        self._pos = 0
        self._index(tokenize(source))

    def _index(self, tokens: list[Token]) -> None:
        group: list[Token] = []
        eligible = False
        prev_line = 0
        for tok in tokens:
            if tok.kind is TokenKind.COMMENT:
                if group and tok.line <= group[-1].end_line + 1:
                    group.append(tok)
                else:
                    group = [tok]
                    eligible = tok.line > prev_line
                continue
            if tok.kind is TokenKind.SEMICOLON and tok.value == "\n":
                self._tokens.append(tok)
                continue
            if group and eligible and group[-1].end_line + 1 == tok.line:
                self._docs[len(self._tokens)] = [c.value for c in group]
            group = []
            prev_line = tok.end_line
            self._tokens.append(tok)

    # token helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _next(self) -> Token:
        tok = self._peek()
        if tok.kind is not TokenKind.EOF:
            self._pos += 1
        return tok

    def _at(self, value: str) -> bool:
        tok = self._peek()
        return tok.value == value and tok.kind in (TokenKind.OPERATOR, TokenKind.KEYWORD)

    def _at_semi(self) -> bool:
        return self._peek().kind is TokenKind.SEMICOLON

    def _at_eof(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def _doc(self) -> list[str]:
        return self._docs.get(self._pos, [])

    def _error(self, tok: Token, expected: str) -> ParseError:
        return ParseError(f"line {tok.line}: expected {expected}, found {tok.value!r}")

    def _expect(self, value: str) -> Token:
        tok = self._next()
        if tok.value != value or tok.kind not in (TokenKind.OPERATOR, TokenKind.KEYWORD):
            raise self._error(tok, repr(value))
        return tok

    def _ident(self) -> str:
        tok = self._next()
        if tok.kind is not TokenKind.IDENT:
            raise self._error(tok, "identifier")
        return tok.value

    def _skip_semis(self) -> None:
        while self._at_semi():
            self._next()

    def _end_item(self) -> None:
        if self._at_semi():
            self._next()
        elif not (self._at(")") or self._at("}") or self._at_eof()):
            raise self._error(self._peek(), "end of declaration")

    def _starts_type(self, tok: Token) -> bool:
        return tok.kind is TokenKind.IDENT or (
            tok.kind in (TokenKind.OPERATOR, TokenKind.KEYWORD) and tok.value in _TYPE_STARTS
        )

    def _skip_until(self, stops: set[str]) -> None:
        """Skip tokens up to a semicolon or a stop token at bracket depth zero."""
        depth = 0
        while not self._at_eof():
            tok = self._peek()
            if depth == 0 and (tok.kind is TokenKind.SEMICOLON or
                               (tok.kind is TokenKind.OPERATOR and tok.value in stops)):
                return
            if tok.kind is TokenKind.OPERATOR:
                if tok.value in "([{":
                    depth += 1
                elif tok.value in ")]}":
                    depth -= 1
            self._next()

    def _skip_brackets(self) -> None:
        self._expect("[")
        depth = 1
        while depth:
            tok = self._next()
            if tok.kind is TokenKind.EOF:
                raise self._error(tok, "']'")
            if tok.kind is TokenKind.OPERATOR:
                if tok.value in "([{":
                    depth += 1
                elif tok.value in ")]}":
                    depth -= 1

    # file structure

    def parse(self) -> str:
        self._skip_semis()
        self._expect("package")
        name = self._ident()
        self._end_item()
        while True:
            self._skip_semis()
            if self._at_eof():
                return name
            if self._at("import"):
                self._next()
                self._grouped(lambda doc: self._import_spec())
            elif self._at("type"):
                doc = self._doc()
                self._next()
                self._grouped(lambda _: self._type_spec(doc))
            elif self._at("const"):
                self._next()
                state = {"type": "", "iota": 0}
                if self._at("("):
                    self._grouped(lambda spec_doc: self._const_spec(state, spec_doc))
                else:
                    self._const_spec(state, [])
                    self._end_item()
            else:
                self._skip_until(set())

    def _grouped(self, parse_spec) -> None:
        if not self._at("("):
            parse_spec(self._doc())
            self._end_item()
            return
        self._next()
        while True:
            self._skip_semis()
            if self._at(")"):
                self._next()
                break
            if self._at_eof():
                raise self._error(self._peek(), "')'")
            parse_spec(self._doc())
            self._end_item()
        self._end_item()

    def _import_spec(self) -> None:
        alias = None
        tok = self._peek()
        if tok.kind is TokenKind.IDENT or (tok.kind is TokenKind.OPERATOR and tok.value == "."):
            alias = self._next().value
        path_tok = self._next()
        if path_tok.kind is not TokenKind.STRING:
            raise self._error(path_tok, "import path")
        path = path_tok.value[1:-1]
        local = alias or _default_import_name(path)
        if local not in (".", "_"):
            self._imports[local] = path

    # types

    def _is_type_params(self) -> bool:
        if not self._at("[") or self._peek(1).kind is not TokenKind.IDENT:
            return False
        third = self._peek(2)
        return third.kind in (TokenKind.IDENT, TokenKind.KEYWORD) or third.value in (",", "~")

    def _type_params(self) -> list[str]:
        self._expect("[")
        names: list[str] = []
        while True:
            names.append(self._ident())
            if self._at(","):
                self._next()
                continue
            self._skip_until({",", "]"})
            if self._at(","):
                self._next()
                continue
            self._expect("]")
            return names

    def _type_spec(self, doc: list[str]) -> None:
        comments = extract_comments(doc)
        tags = extract_tags(comments)
        name = self._ident()
        type_params = self._type_params() if self._is_type_params() else []
        if self._at("="):
            self._next()

        if tags.get("go2proto") == "false":
            self._parse_type()
            return
        if self._at("struct"):
            self._next()
            fields = self._struct_fields()
            self._pkg.structs.append(GoStruct(name, fields, comments, tags, type_params))
        elif self._at("interface"):
            self._next()
            methods = self._interface_methods()
            self._pkg.interfaces.append(GoInterface(name, methods, comments, tags))
        else:
            first = self._peek()
            start = self._pos
            typ = self._parse_type()
            consumed = self._pos - start
            if first.kind is TokenKind.IDENT and consumed in (1, 3):
                self._pkg.aliases.append(GoAlias(name, typ, comments, tags))

    def _resolve(self, name: str) -> str:
        return self._imports.get(name, name)

    def _parse_type(self) -> GoType:
        tok = self._next()
        value = tok.value
        if tok.kind is TokenKind.IDENT:
            if self._at("."):
                self._next()
                typ: GoType = NamedType(self._resolve(value), self._ident())
            else:
                typ = _ident_type(value)
            if self._at("["):
                self._skip_brackets()
                return BasicType("any")
            return typ
        if tok.kind not in (TokenKind.OPERATOR, TokenKind.KEYWORD):
            raise self._error(tok, "type")
        if value == "*":
            return PointerType(self._parse_type())
        if value == "[":
            if self._at("]"):
                self._next()
                return SliceType(self._parse_type())
            self._pos -= 1
            self._skip_brackets()
            return ArrayType(self._parse_type())
        if value == "map":
            self._expect("[")
            key = self._parse_type()
            self._expect("]")
            return MapType(key, self._parse_type())
        if value == "chan":
            direction = ChanDir.BOTH
            if self._at("<-"):
                self._next()
                direction = ChanDir.SEND
            return ChanType(self._parse_type(), direction)
        if value == "<-":
            self._expect("chan")
            return ChanType(self._parse_type(), ChanDir.RECV)
        if value == "func":
            params = self._params()
            results = self._results()
            return FuncType(tuple(params), tuple(results))
        if value == "struct":
            self._struct_fields()
            return StructType()
        if value == "interface":
            self._interface_methods()
            return InterfaceType()
        if value == "(":
            self._parse_type()
            self._expect(")")
            return BasicType("any")
        if value == "...":
            self._parse_type()
            return BasicType("any")
        raise self._error(tok, "type")

    def _struct_fields(self) -> list[GoField]:
        self._expect("{")
        fields: list[GoField] = []
        while True:
            self._skip_semis()
            if self._at("}"):
                self._next()
                return fields
            if self._at_eof():
                raise self._error(self._peek(), "'}'")
            fields.extend(self._field_decl(extract_comments(self._doc())))
            self._end_item()

    def _starts_named_field(self) -> bool:
        if self._peek().kind is not TokenKind.IDENT:
            return False
        after = self._peek(1)
        if after.value == "," and after.kind is TokenKind.OPERATOR:
            return True
        if after.value == "." or after.kind in (TokenKind.STRING, TokenKind.SEMICOLON):
            return False
        return after.value != "}"

    def _tag(self) -> str:
        return self._next().value if self._peek().kind is TokenKind.STRING else ""

    def _field_decl(self, comments: list[str]) -> list[GoField]:
        if self._starts_named_field():
            names = [self._ident()]
            while self._at(","):
                self._next()
                names.append(self._ident())
            typ = self._parse_type()
            tag = self._tag()
            return [
                GoField(name, typ, tag, False, tuple(comments), _is_exported(name))
                for name in names
            ]
        typ = self._parse_type()
        tag = self._tag()
        return [GoField(type_name_from_go_type(typ), typ, tag, True, tuple(comments), True)]

    def _interface_methods(self) -> list[GoMethod]:
        self._expect("{")
        methods: list[GoMethod] = []
        while True:
            self._skip_semis()
            if self._at("}"):
                self._next()
                return methods
            if self._at_eof():
                raise self._error(self._peek(), "'}'")
            if self._peek().kind is TokenKind.IDENT and self._peek(1).value == "(":
                name = self._ident()
                params = self._params()
                results = self._results()
                methods.append(GoMethod(name, tuple(params), tuple(results)))
            else:
                self._skip_until({"}"})
            self._end_item()

    def _params(self) -> list[GoParam]:
        self._expect("(")
        entries: list[tuple[str | None, GoType | None]] = []
        while not self._at(")"):
            first, second = self._peek(), self._peek(1)
            if first.kind is TokenKind.IDENT and second.value in (",", ")"):
                self._next()
                entries.append((first.value, None))
            elif (first.kind is TokenKind.IDENT and second.value != "."
                  and self._starts_type(second)):
                self._next()
                entries.append((first.value, self._parse_type()))
            else:
                entries.append((None, self._parse_type()))
            if not self._at(","):
                break
            self._next()
        self._expect(")")

        if not any(name is not None and typ is not None for name, typ in entries):
            return [GoParam(typ if typ is not None else _ident_type(name))
                    for name, typ in entries]
        params: list[GoParam] = []
        pending: list[str] = []
        for name, typ in entries:
            if typ is None:
                pending.append(name)
                continue
            if name is None:
                params.append(GoParam(typ))
                continue
            pending.append(name)
            params.extend(GoParam(typ, n) for n in pending)
            pending = []
        if pending:
            raise ParseError("mixed named and unnamed parameters")
        return params

    def _results(self) -> list[GoParam]:
        if self._at("("):
            return self._params()
        if self._starts_type(self._peek()):
            return [GoParam(self._parse_type())]
        return []

    # constants

    def _const_spec(self, state: dict, doc: list[str]) -> None:
        names = [self._ident()]
        while self._at(","):
            self._next()
            names.append(self._ident())
        if not (self._at("=") or self._at_semi() or self._at(")") or self._at_eof()):
            if self._peek().kind is TokenKind.IDENT and self._peek(1).value not in (".", "["):
                type_name = self._next().value
                if type_name != state["type"]:
                    state["type"] = type_name
                    state["iota"] = 0
            else:
                self._parse_type()
        if self._at("="):
            self._next()
            self._skip_until({")"})

        type_name = state["type"]
        if not type_name:
            return
        group = self._groups.setdefault(type_name, GoConstGroup(type_name))
        comments = extract_comments(doc)
        for name in names:
            if _is_exported(name):
                group.values.append(GoConstValue(name, state["iota"], list(comments)))
            state["iota"] += 1


class Parser:
    """Reads Go packages from directories or source text."""

    def parse_source(self, source: str, path: str = "") -> GoPackage:
        """Parse the text of one file as a package with the given import path."""
        pkg = GoPackage(path=path, name="")
        groups: dict[str, GoConstGroup] = {}
        pkg.name = _FileParser(source, pkg, groups).parse()
        pkg.consts = [g for g in groups.values() if g.values]
        return pkg

    def parse_packages(self, *patterns: str) -> list[GoPackage]:
        """Parse the packages named by directory patterns such as ``./...``."""
        directories: list[Path] = []
        for pattern in patterns or (".",):
            recursive = pattern == "..." or pattern.endswith("/...")
            base = Path((pattern[:-3].rstrip("/") or ".") if recursive else pattern)
            if not base.is_dir():
                raise ParseError(f"directory not found: {pattern}")
            if recursive:
                directories.extend(self._walk(base))
            elif not self._go_files(base):
                raise ParseError(f"no Go files in {base}")
            else:
                directories.append(base)
        unique_dirs = list(dict.fromkeys(d.resolve() for d in directories))
        return [self._parse_dir(d) for d in unique_dirs]

    @staticmethod
    def _go_files(directory: Path) -> list[Path]:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix == ".go" and not p.name.endswith("_test.go")
        )

    def _walk(self, root: Path) -> Iterable[Path]:
        for dirpath, dirnames, _ in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith((".", "_")) and d != "testdata"
                and not (current / d / "go.mod").is_file()
            )
            if self._go_files(current):
                yield current

    def _parse_dir(self, directory: Path) -> GoPackage:
        pkg = GoPackage(path=self._import_path(directory), name="")
        groups: dict[str, GoConstGroup] = {}
        for file in self._go_files(directory):
            try:
                name = _FileParser(file.read_text(encoding="utf-8"), pkg, groups).parse()
            except (LexError, ParseError) as exc:
                raise ParseError(f"{file}: {exc}") from exc
            if pkg.name and name != pkg.name:
                raise ParseError(
                    f"found packages {pkg.name} and {name} in {directory}"
                )
            pkg.name = name
        pkg.consts = [g for g in groups.values() if g.values]
        return pkg

    @staticmethod
    def _import_path(directory: Path) -> str:
        for root in (directory, *directory.parents):
            go_mod = root / "go.mod"
            if not go_mod.is_file():
                continue
            for text in go_mod.read_text(encoding="utf-8").splitlines():
                words = text.split("//")[0].split()
                if len(words) >= 2 and words[0] == "module":
                    module = words[1].strip('"`')
                    rel = directory.relative_to(root).as_posix()
                    return module if rel == "." else f"{module}/{rel}"
        return directory.name