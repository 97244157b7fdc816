"""Command-line entry point that writes .proto files for Go packages."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Sequence

from go2proto.gotypes import GoPackage
from go2proto.generator import Generator
from go2proto.lexer import LexError
from go2proto.parser import ParseError, Parser
from go2proto.protomodel import default_options
from go2proto.transformer import Transformer

VERSION = "0.1.0"

_DESCRIPTION = """\
go2proto - Generate Protocol Buffer definitions from Go source code

Packages can be:
  .           Current directory
  ./...       Current directory and all subdirectories
  ./models    Specific package
"""

_EPILOG = """\
Comment Tags:
  // +go2proto=false      Skip this type
  // +go2proto:service    Generate interface as gRPC service
  // +go2proto:enum       Generate type alias as enum
"""


@dataclass
class CliOptions:
    """Settings taken from the command line."""

    out_dir: str = "."
    package: str = ""
    go_package: str = ""
    include_private: bool = False
    one_file: bool = False
    filename: str = ""
    verbose: bool = False


def _format_list(items: Sequence[str]) -> str:
    return "[" + " ".join(items) + "]"


def _write(path: str, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
    except OSError as exc:
        raise RuntimeError(f"failed to write {path}: {exc}") from exc


def _generate_single_file(
    pkgs: list[GoPackage],
    transformer: Transformer,
    generator: Generator,
    options: CliOptions,
) -> list[str]:
    proto = transformer.transform(pkgs)
    content = generator.generate(proto)

    filename = options.filename
    if not filename:
        if proto.package:
            filename = proto.package.replace(".", "_") + ".proto"
        else:
            filename = "generated.proto"

    out_path = os.path.normpath(os.path.join(options.out_dir, filename))
    _write(out_path, content)
    print(f"Generated: {out_path}" if options.verbose else out_path)
    return [out_path]


def _generate_per_package(
    pkgs: list[GoPackage],
    transformer: Transformer,
    generator: Generator,
    options: CliOptions,
) -> list[str]:
    written: list[str] = []
    for pkg in pkgs:
        if not pkg.structs and not pkg.interfaces:
            if options.verbose:
                print(f"Skipping empty package: {pkg.path}")
            continue

        proto = transformer.transform([pkg])
        if not proto.messages and not proto.services and not proto.enums:
            if options.verbose:
                print(f"Skipping package with no proto types: {pkg.path}")
            continue

        content = generator.generate(proto)
        out_path = os.path.normpath(os.path.join(options.out_dir, f"{pkg.name}.proto"))
        _write(out_path, content)

        if options.verbose:
            print(
                f"Generated: {out_path} ({len(proto.messages)} messages, "
                f"{len(proto.services)} services, {len(proto.enums)} enums)"
            )
        else:
            print(out_path)
        written.append(out_path)
    return written


def run(patterns: Sequence[str], options: CliOptions | None = None) -> list[str]:
    """Generate .proto files for the packages and return the paths written.

    Raises :class:`RuntimeError` when parsing or writing fails.
    """
    options = options if options is not None else CliOptions()
    patterns = list(patterns) or ["."]

    if options.verbose:
        print(f"Parsing packages: {_format_list(patterns)}")

    try:
        pkgs = Parser().parse_packages(*patterns)
    except (ParseError, LexError, OSError) as exc:
        raise RuntimeError(f"failed to parse packages: {exc}") from exc

    if not pkgs:
        raise RuntimeError(f"no packages found matching: {_format_list(patterns)}")

    if options.verbose:
        print(f"Found {len(pkgs)} package(s)")
        for pkg in pkgs:
            print(f"  - {pkg.path} ({len(pkg.structs)} structs, "
                  f"{len(pkg.interfaces)} interfaces)")

    try:
        os.makedirs(options.out_dir, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(f"failed to create output directory: {exc}") from exc

    transform_options = default_options()
    transform_options.package_name = options.package
    transform_options.go_package = options.go_package
    transform_options.include_private = options.include_private

    transformer = Transformer(transform_options)
    generator = Generator()

    if options.one_file:
        return _generate_single_file(pkgs, transformer, generator, options)
    return _generate_per_package(pkgs, transformer, generator, options)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="go2proto",
        usage="go2proto [flags] <packages...>",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("-out", "--out", dest="out_dir", default=".",
                        help="Output directory for .proto files")
    parser.add_argument("-package", "--package", dest="package", default="",
                        help="Proto package name (default: derived from Go package)")
    parser.add_argument("-go_package", "--go_package", dest="go_package", default="",
                        help="go_package option (default: same as Go import path)")
    parser.add_argument("-private", "--private", dest="include_private",
                        action="store_true", help="Include unexported fields")
    parser.add_argument("-one-file", "--one-file", dest="one_file", action="store_true",
                        help="Generate a single .proto file for all packages")
    parser.add_argument("-filename", "--filename", dest="filename", default="",
                        help="Output filename (only with -one-file)")
    parser.add_argument("-version", "--version", dest="show_version",
                        action="store_true", help="Show version")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    parser.add_argument("packages", nargs="*", help="Packages to read")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command and return its exit status."""
    args = _build_arg_parser().parse_args(argv)

    if args.show_version:
        print(f"go2proto version {VERSION}")
        return 0

    options = CliOptions(
        out_dir=args.out_dir,
        package=args.package,
        go_package=args.go_package,
        include_private=args.include_private,
        one_file=args.one_file,
        filename=args.filename,
        verbose=args.verbose,
    )
    try:
        run(args.packages or ["."], options)
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())