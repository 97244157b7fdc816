# go2proto

Generate Protocol Buffer (`proto3`) definitions from Go source code.

go2proto reads the Go files of one or more package directories and writes
`.proto` files that describe them:

- exported structs become messages, with snake_case field names and
  sequential field numbers; embedded fields are left out, and unexported
  fields are left out unless `-private` is given;
- typed constant groups with two or more exported values become enums,
  with upper-case value names prefixed by the type name;
- interfaces marked as services become gRPC services, with request and
  response messages generated where a method's parameters or results are
  not a single named type (`context.Context` parameters and `error`
  results are dropped; no parameters or no results give
  `google.protobuf.Empty`);
- `time.Time` and `time.Duration` map to `google.protobuf.Timestamp` and
  `google.protobuf.Duration`; interfaces, type parameters and types from
  other packages map to `google.protobuf.Any`; the needed imports are
  added.

## Installation

```
pip install .
```

## Command line

```
go2proto [flags] <packages...>
```

Packages are directories:

| Pattern    | Meaning                                   |
|------------|-------------------------------------------|
| `.`        | Current directory (the default)           |
| `./...`    | Current directory and all subdirectories  |
| `./models` | A specific package directory              |

Flags (each may be written with one or two dashes, except `-v`):

| Flag          | Meaning                                                         |
|---------------|-----------------------------------------------------------------|
| `-out`        | Output directory for `.proto` files (default `.`)               |
| `-package`    | Proto package name (default: derived from the Go package path)  |
| `-go_package` | `go_package` option (default: the Go import path)               |
| `-private`    | Include unexported fields                                       |
| `-one-file`   | Write a single `.proto` file for all packages                   |
| `-filename`   | Output file name (only with `-one-file`)                        |
| `-version`    | Show the version                                                |
| `-v`          | Verbose output                                                  |

Without `-one-file`, one file named `<package>.proto` is written per Go
package that yields any messages, enums or services. With `-one-file`, the
file is named by `-filename`, or else after the proto package with dots
replaced by underscores, or `generated.proto`. The path of each written
file is printed. Errors are reported on standard error with exit status 1.

Example:

```
go2proto -out proto ./models
```

## Comment tags

Place these in the doc comment above a type declaration:

```go
// +go2proto=false      Skip this type
// +go2proto:service    Generate interface as gRPC service
// +go2proto:enum       Generate type alias as enum
```

Tag lines are not copied into the generated comments.

A struct field carrying a `protobuf:"..."` struct tag keeps the name,
number and wire type given there.

## Example

Given:

```go
package models

type Status int

const (
	StatusUnknown Status = iota
	StatusActive
	StatusInactive
)

type User struct {
	ID     string            `json:"id"`
	Status Status            `json:"status"`
	Tags   map[string]string `json:"tags"`
}

// +go2proto:service
type UserService interface {
	GetUser(ctx context.Context, id string) (*User, error)
}
```

go2proto produces an enum `Status` with values `STATUS_UNKNOWN = 0`,
`STATUS_ACTIVE = 1` and `STATUS_INACTIVE = 2`, a message `User` with the
fields `id`, `status` and `map<string, string> tags`, and a service
`UserService` with `rpc GetUser(GetUserRequest) returns (User);`.

## Library use

```python
from go2proto.parser import Parser
from go2proto.protomodel import default_options
from go2proto.transformer import Transformer
from go2proto.generator import Generator

package = Parser().parse_source(go_source, "example.com/app/models")
proto = Transformer(default_options()).transform([package])
print(Generator().generate(proto))
```

`Parser.parse_packages` accepts the same patterns as the command line and
raises `go2proto.parser.ParseError` for a missing directory, a directory
without Go files, or source it cannot read. `go2proto.cli.run` does the
command's work for a list of patterns and a `CliOptions`, and returns the
paths it wrote.

## Limits

go2proto reads Go source with its own parser; it does not run the Go
toolchain or type-check the code. In particular:

- package patterns are directories, not Go import paths;
- build constraints are not honoured: every `.go` file in a directory
  except `_test.go` files is read;
- when walking `./...`, directories starting with `.` or `_`, `testdata`
  and nested modules (directories with their own `go.mod`) are skipped;
- a package's import path comes from the nearest `go.mod`; without one,
  the directory name is used;
- constant values are counted by position in their `const` block, not
  evaluated from their expressions.