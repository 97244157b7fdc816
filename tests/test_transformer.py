import pytest

from go2proto.gotypes import (
    ArrayType,
    BasicType,
    GoAlias,
    GoConstGroup,
    GoConstValue,
    GoField,
    GoInterface,
    GoMethod,
    GoPackage,
    GoParam,
    GoStruct,
    InterfaceType,
    MapType,
    NamedType,
    PointerType,
    SliceType,
)
from go2proto.protomodel import ProtoField, TransformOptions
from go2proto.transformer import (
    Transformer,
    filter_non_tag_comments,
    is_basic_proto_type,
    parse_protobuf_tag,
    to_enum_value_name,
    to_proto_package,
    to_snake_case,
)

MODELS_PATH = "github.com/acme/inventory/models"


def _models_package() -> GoPackage:
    user = GoStruct(
        name="User",
        comments=["User represents a user."],
        fields=[
            GoField("ID", BasicType("string")),
            GoField("Email", BasicType("string")),
            GoField("Name", BasicType("string")),
            GoField("Status", NamedType("", "Status")),
            GoField("Tags", MapType(BasicType("string"), BasicType("string"))),
            GoField("CreatedAt", NamedType("time", "Time")),
        ],
    )
    ctx = GoParam(NamedType("context", "Context"), "ctx")
    err = GoParam(BasicType("error"))
    service = GoInterface(
        name="UserService",
        comments=["+go2proto:service", "UserService defines user operations."],
        tags={"go2proto:service": "true"},
        methods=[
            GoMethod(
                "GetUser",
                (ctx, GoParam(BasicType("string"), "id")),
                (GoParam(PointerType(NamedType("", "User"))), err),
            ),
            GoMethod(
                "CreateUser",
                (ctx, GoParam(PointerType(NamedType("", "User")), "user")),
                (GoParam(PointerType(NamedType("", "User"))), err),
            ),
        ],
    )
    status = GoConstGroup(
        "Status",
        [
            GoConstValue("StatusUnknown", 0),
            GoConstValue("StatusActive", 1),
            GoConstValue("StatusInactive", 2),
        ],
    )
    return GoPackage(
        path=MODELS_PATH,
        name="models",
        structs=[user],
        interfaces=[service],
        aliases=[GoAlias("Status", BasicType("int"))],
        consts=[status],
    )


def _single_struct(fields, **kwargs) -> GoPackage:
    return GoPackage(path="example.com/app", name="app",
                     structs=[GoStruct(name="Thing", fields=fields, **kwargs)])


def _fields_of(proto, name="Thing"):
    message = next(m for m in proto.messages if m.name == name)
    return {f.name: f for f in message.fields}


@pytest.mark.parametrize("name, expected", [
    ("ID", "id"),
    ("Email", "email"),
    ("CreatedAt", "created_at"),
])
def test_to_snake_case(name, expected):
    assert to_snake_case(name) == expected


def test_to_snake_case_keeps_lowercase_unchanged():
    assert to_snake_case("already_snake") == "already_snake"


def test_to_snake_case_is_lowercase():
    result = to_snake_case("HTTPServerConfig")
    assert result == result.lower()
    assert "_" in result


def test_to_enum_value_name_with_prefix():
    assert to_enum_value_name("Status", "StatusActive") == "STATUS_ACTIVE"


def test_to_enum_value_name_adds_prefix():
    result = to_enum_value_name("Status", "Active")
    assert result == to_enum_value_name("Status", "StatusActive")


def test_to_proto_package_strips_host():
    assert to_proto_package(MODELS_PATH) == "acme.inventory.models"


def test_to_proto_package_other_hosts_kept():
    result = to_proto_package("example.com/my-app/sub")
    assert "/" not in result and "-" not in result
    assert result.startswith("example.com.")


def test_parse_protobuf_tag_reads_fields():
    tag = '`protobuf:"bytes,1,opt,name=id,proto3" json:"id"`'
    assert parse_protobuf_tag(tag) == ProtoField(
        name="id", type="bytes", number=1, optional=True
    )


def test_parse_protobuf_tag_repeated_varint():
    field = parse_protobuf_tag('`protobuf:"varint,3,rep,name=counts"`')
    assert field.type == "int64"
    assert field.repeated is True
    assert field.number == 3
    assert field.name == "counts"


@pytest.mark.parametrize("tag", ["", '`json:"id"`', '`protobuf:"bytes,1"`'])
def test_parse_protobuf_tag_without_usable_tag(tag):
    assert parse_protobuf_tag(tag) is None


def test_filter_non_tag_comments():
    assert filter_non_tag_comments(["+go2proto:service", "Docs", " +x=1"]) == ["Docs"]


@pytest.mark.parametrize("name, expected", [
    ("string", True), ("double", True), ("sfixed64", True),
    ("google.protobuf.Any", False), ("User", False),
])
def test_is_basic_proto_type(name, expected):
    assert is_basic_proto_type(name) is expected


def test_transform_models_header():
    proto = Transformer().transform([_models_package()])
    assert proto.syntax == "proto3"
    assert proto.package == "acme.inventory.models"
    assert proto.options == {"go_package": MODELS_PATH}


def test_transform_models_enum():
    proto = Transformer().transform([_models_package()])
    assert len(proto.enums) == 1
    enum = proto.enums[0]
    assert enum.name == "Status"
    assert [v.number for v in enum.values] == [0, 1, 2]
    assert enum.values[1].name == "STATUS_ACTIVE"
    assert all(v.name.startswith("STATUS_") for v in enum.values)


def test_transform_models_user_message():
    proto = Transformer().transform([_models_package()])
    fields = _fields_of(proto, "User")
    assert list(fields) == ["id", "email", "name", "status", "tags", "created_at"]
    assert [f.number for f in fields.values()] == [1, 2, 3, 4, 5, 6]
    assert fields["status"].type == "Status"
    assert (fields["tags"].map_key, fields["tags"].map_value) == ("string", "string")
    assert fields["created_at"].type == "google.protobuf.Timestamp"
    assert "google/protobuf/timestamp.proto" in proto.imports


def test_transform_models_service():
    proto = Transformer().transform([_models_package()])
    service = proto.services[0]
    assert service.name == "UserService"
    assert service.comments == ["UserService defines user operations."]
    get_user, create_user = service.methods
    assert (get_user.input_type, get_user.output_type) == ("GetUserRequest", "User")
    assert (create_user.input_type, create_user.output_type) == ("CreateUserRequest", "User")
    request = _fields_of(proto, "GetUserRequest")
    assert request["id"].type == "string"
    assert request["id"].number == 1
    assert _fields_of(proto, "CreateUserRequest")["user"].type == "User"


def test_untagged_interface_is_not_a_service():
    pkg = _models_package()
    pkg.interfaces[0].tags = {}
    proto = Transformer().transform([pkg])
    assert proto.services == []
    assert [m.name for m in proto.messages] == ["User"]


def test_method_without_params_uses_empty():
    iface = GoInterface(name="Pinger", tags={"go2proto": "service"},
                        methods=[GoMethod("Ping")])
    proto = Transformer().transform([GoPackage("example.com/p", "p", interfaces=[iface])])
    rpc = proto.services[0].methods[0]
    assert rpc.input_type == "google.protobuf.Empty"
    assert rpc.output_type == "google.protobuf.Empty"
    assert proto.imports == ["google/protobuf/empty.proto"]


def test_multiple_results_build_response_message():
    method = GoMethod("Count", (), (GoParam(BasicType("int")), GoParam(BasicType("string"))))
    iface = GoInterface(name="Counter", tags={"go2proto:service": "true"}, methods=[method])
    proto = Transformer().transform([GoPackage("example.com/p", "p", interfaces=[iface])])
    assert proto.services[0].methods[0].output_type == "CountResponse"
    fields = _fields_of(proto, "CountResponse")
    assert list(fields) == ["result1", "result2"]
    assert fields["result1"].type == "int64"


def test_lowercase_and_skipped_structs_produce_nothing():
    pkg = GoPackage("example.com/p", "p", structs=[
        GoStruct(name="hidden", fields=[GoField("A", BasicType("int"))]),
        GoStruct(name="Skipped", tags={"go2proto": "false"}),
    ])
    assert Transformer().transform([pkg]).messages == []


def test_private_and_embedded_fields():
    fields = [
        GoField("secretValue", BasicType("string"), exported=False),
        GoField("Base", NamedType("", "Base"), embedded=True),
        GoField("Visible", BasicType("bool")),
    ]
    default = _fields_of(Transformer().transform([_single_struct(fields)]))
    assert list(default) == ["visible"]
    assert default["visible"].number == 1
    opts = TransformOptions(include_private=True)
    private = _fields_of(Transformer(opts).transform([_single_struct(fields)]))
    assert list(private) == ["secret_value", "visible"]


def test_field_type_rules():
    fields = [
        GoField("Count", PointerType(BasicType("int32"))),
        GoField("Owner", PointerType(NamedType("", "User"))),
        GoField("Data", SliceType(BasicType("byte"))),
        GoField("Items", ArrayType(BasicType("float64"), 4)),
        GoField("Ext", NamedType("example.com/other", "Thing")),
        GoField("Value", NamedType("", "T")),
        GoField("Anything", InterfaceType()),
        GoField("Wait", NamedType("time", "Duration")),
    ]
    proto = Transformer().transform([_single_struct(fields, type_params=["T"])])
    result = _fields_of(proto)
    assert result["count"].optional and result["count"].type == "int32"
    assert not result["owner"].optional
    assert result["data"].type == "bytes" and not result["data"].repeated
    assert result["items"].repeated and result["items"].type == "double"
    assert result["ext"].type == "google.protobuf.Any"
    assert result["value"].type == "google.protobuf.Any"
    assert result["anything"].type == "google.protobuf.Any"
    assert result["wait"].type == "google.protobuf.Duration"
    assert sorted(proto.imports) == [
        "google/protobuf/any.proto", "google/protobuf/duration.proto"
    ]


def test_protobuf_tag_overrides_field():
    fields = [GoField("Id", BasicType("string"),
                      tag='`protobuf:"bytes,7,opt,name=ident,proto3"`')]
    result = _fields_of(Transformer().transform([_single_struct(fields)]))
    assert result["ident"].number == 7


def test_enum_alias_tag_marks_type_as_enum():
    pkg = _single_struct([GoField("Kind", NamedType("", "Kind"))])
    pkg.aliases = [GoAlias("Kind", BasicType("int"), tags={"go2proto:enum": "true"})]
    pkg.consts = [GoConstGroup("Kind", [GoConstValue("KindA", 0)])]
    proto = Transformer().transform([pkg])
    assert [e.name for e in proto.enums] == ["Kind"]
    assert _fields_of(proto)["kind"].type == "Kind"


def test_single_const_does_not_make_enum():
    pkg = _single_struct([])
    pkg.consts = [GoConstGroup("Level", [GoConstValue("LevelLow", 0)])]
    assert Transformer().transform([pkg]).enums == []


def test_options_override_package_names():
    opts = TransformOptions(package_name="custom.v1", go_package="example.com/gen")
    proto = Transformer(opts).transform([_models_package()])
    assert proto.package == "custom.v1"
    assert proto.options["go_package"] == "example.com/gen"


def test_multiple_packages_keep_first_package_and_merge():
    first = _single_struct([GoField("A", BasicType("int"))])
    second = GoPackage("example.com/other", "other",
                       structs=[GoStruct("Other", [GoField("B", BasicType("int"))])])
    proto = Transformer().transform([first, second])
    assert proto.package == to_proto_package(first.path)
    assert [m.name for m in proto.messages] == ["Thing", "Other"]
    assert proto.options == {"go_package": second.path}


def test_transform_no_packages():
    proto = Transformer().transform([])
    assert proto.syntax == "proto3"
    assert proto.messages == [] and proto.package == ""