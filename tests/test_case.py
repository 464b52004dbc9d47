import pytest

from protoc_pruner.case import (
    apply_case,
    camelize,
    compact,
    format_proto_file_name,
    normalize_style,
    snake_case,
)


class TestCamelize:
    @pytest.mark.parametrize("name, expected", [
        ("asn", "Asn"),
        ("asnBe", "AsnBe"),
        ("ASN", "ASN"),
        ("ASNBe", "ASNBe"),
        ("asn_be", "AsnBe"),
        ("asn_be_foo", "AsnBeFoo"),
        ("foo", "Foo"),
        ("FOO", "FOO"),
        ("foo_bar", "FooBar"),
        ("fooBar", "FooBar"),
        ("FOOBar", "FOOBar"),
        ("fooBAR", "FooBAR"),
        ("foo-bar.baz qux", "FooBarBazQux"),
        ("", ""),
    ])
    def test_camelize(self, name, expected):
        assert camelize(name) == expected


class TestSnakeCase:
    @pytest.mark.parametrize("name, expected", [
        ("FooBar", "foo_bar"),
        ("fooBarBaz", "foo_bar_baz"),
        ("FOOBar", "f_o_o_bar"),
        ("fooBAR", "foo_b_a_r"),
        ("foo_bar", "foo_bar"),
        ("foo-bar", "foo_bar"),
        ("foo.bar", "foo_bar"),
        ("foo bar", "foo_bar"),
        ("foo__bar", "foo_bar"),
        ("fooBar1", "foo_bar1"),
        ("foo1Bar", "foo1_bar"),
        ("foo1bar2", "foo1bar2"),
        ("_Leading_", "leading"),
        ("", ""),
    ])
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected


class TestCompact:
    def test_removes_delimiters_and_lowercases(self):
        assert compact("foo-bar.baz") == "foobarbaz"
        assert compact("Foo_Bar Baz") == "foobarbaz"


class TestApplyCase:
    def test_keep_is_identity(self):
        assert apply_case("some_File-name", "keep") == "some_File-name"

    def test_unchanged_alias(self):
        assert normalize_style("unchanged") == "keep"
        assert apply_case("fooBar", "unchanged") == "fooBar"

    def test_style_is_case_insensitive(self):
        assert apply_case("foo_bar", " Camel ") == "FooBar"

    def test_unknown_style_raises(self):
        with pytest.raises(KeyError):
            apply_case("foo", "kebab")

    def test_proto_file_name(self):
        assert format_proto_file_name("player_info", "camel") == "PlayerInfo.proto"
        assert format_proto_file_name("PlayerInfo", "snake") == "player_info.proto"
        assert format_proto_file_name("player-info", "compact") == "playerinfo.proto"
        assert format_proto_file_name("player_info", "keep") == "player_info.proto"
