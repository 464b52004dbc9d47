import os
import tempfile

import pytest

from protoc_pruner.parser.proto_ast_parser import ProtoParseError, collect_type_refs, scan_imports
from protoc_pruner.parser.proto_parser import parse_proto_file, parse_proto_text


def _write_temp_proto(content: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".proto")
    os.write(fd, content.encode())
    os.close(fd)
    return path


class TestHeader:
    def test_syntax_and_package(self):
        schema = parse_proto_text('syntax = "proto2";\npackage game.player;\n')
        assert schema.syntax == "proto2"
        assert schema.package == "game.player"

    def test_defaults(self):
        schema = parse_proto_text("message A {}\n")
        assert schema.syntax == "proto3"
        assert schema.package == ""

    def test_imports(self):
        schema = parse_proto_text(
            'import "a.proto";\n'
            'import public "b.proto";\n'
            '// import "commented.proto";\n'
            'import weak "c.proto";\n'
        )
        assert schema.imports == ("a.proto", "b.proto", "c.proto")


class TestBlocks:
    def test_top_level_messages_and_enums_in_order(self):
        proto = """\
syntax = "proto3";

enum Color {
    RED = 0;
}

message Foo {
    int32 id = 1;
}

service Svc {
    rpc Get (Foo) returns (Foo);
}

message Bar {
    Color color = 1;
}
"""
        schema = parse_proto_text(proto)
        assert [(d.kind, d.name) for d in schema.definitions] == [
            ("enum", "Color"),
            ("message", "Foo"),
            ("message", "Bar"),
        ]

    def test_span_covers_keyword_to_closing_brace(self):
        proto = 'syntax = "proto3";\n\nmessage Foo {\n    int32 id = 1;\n}\n'
        schema = parse_proto_text(proto)
        foo = schema.get("Foo")
        assert foo.text == "message Foo {\n    int32 id = 1;\n}"
        assert proto[foo.start:foo.end] == foo.text

    def test_braces_in_strings_and_comments_do_not_count(self):
        proto = """\
message Foo {
    // a stray } in a comment
    /* and { another */
    string s = 1 [default = "}{"];
}

message Bar {}
"""
        schema = parse_proto_text(proto)
        assert schema.names() == ("Foo", "Bar")
        assert schema.get("Foo").text.endswith('[default = "}{"];\n}')

    def test_nested_blocks_stay_inside_parent(self):
        proto = """\
message Outer {
    message Inner {
        int32 value = 1;
    }
    enum Kind {
        A = 0;
    }
    Inner detail = 1;
}
"""
        schema = parse_proto_text(proto)
        assert schema.names() == ("Outer",)
        assert "message Inner" in schema.get("Outer").text

    def test_top_level_extend_is_skipped(self):
        schema = parse_proto_text("extend Foo {\n    int32 bar = 100;\n}\nmessage A {}\n")
        assert schema.names() == ("A",)

    def test_unterminated_block_raises(self):
        with pytest.raises(ProtoParseError) as exc:
            parse_proto_text("message Broken {\n    int32 a = 1;\n", path="broken.proto")
        assert "broken.proto" in str(exc.value)
        assert "Broken" in str(exc.value)

    def test_duplicate_name_keeps_first(self):
        schema = parse_proto_text("message A { int32 x = 1; }\nmessage A { int32 y = 1; }\n")
        assert len(schema.definitions) == 1
        assert "x = 1" in schema.get("A").text


class TestTypeRefs:
    def test_field_types(self):
        refs = collect_type_refs("""\
message A {
    B b = 1;
    repeated pkg.C cs = 2;
    optional .other.D d = 3 [deprecated = true];
    int32 n = 4;
}
""")
        assert refs == ["B", "pkg.C", ".other.D", "int32"]

    def test_map_key_and_value(self):
        refs = collect_type_refs("message A {\n    map<string, Entry> entries = 1;\n}")
        assert refs == ["string", "Entry"]

    def test_oneof_members(self):
        refs = collect_type_refs("""\
message A {
    oneof choice {
        Left left = 1;
        Right right = 2;
    }
}
""")
        assert refs == ["Left", "Right"]

    def test_nested_declarations_are_excluded(self):
        refs = collect_type_refs("""\
message Outer {
    message Inner {
        Shared shared = 1;
    }
    Inner inner = 1;
    Outer.Inner again = 2;
}
""")
        assert refs == ["Shared"]

    def test_options_and_enum_values_are_not_fields(self):
        refs = collect_type_refs("""\
message A {
    option deprecated = true;
    enum E {
        option allow_alias = true;
        X = 0;
    }
    reserved 5;
}
""")
        assert refs == []

    def test_comments_are_ignored(self):
        refs = collect_type_refs("message A {\n    // Ghost g = 1;\n    Real r = 2;\n}")
        assert refs == ["Real"]

    def test_definition_refs_are_recorded(self):
        schema = parse_proto_text("message A {\n    B b = 1;\n}\n")
        assert schema.get("A").refs == ("B",)


class TestParseFile:
    def test_parse_file(self):
        path = _write_temp_proto('syntax = "proto3";\npackage p;\nmessage A { B b = 1; }\n')
        try:
            schema = parse_proto_file(path)
            assert schema.path == path
            assert schema.package == "p"
            assert schema.names() == ("A",)
            assert schema.key == os.path.basename(path).lower()
        finally:
            os.unlink(path)

    def test_unreadable_file_raises(self, tmp_path):
        missing = str(tmp_path / "missing.proto")
        with pytest.raises(ProtoParseError) as exc:
            parse_proto_file(missing)
        assert "missing.proto" in str(exc.value)


class TestScanImports:
    def test_tolerates_unterminated_blocks(self):
        assert scan_imports('import "a.proto";\nmessage Broken {\n') == ["a.proto"]
