from protoc_pruner.sanitizer import (
    normalize_blank_lines,
    sanitize_proto_output,
    strip_comments,
    strip_self_package_qualifiers,
)


class TestStripComments:
    def test_line_and_block_comments(self):
        text = "int32 a = 1; // trailing\n/* block\n spans */int32 b = 2;"
        assert strip_comments(text) == "int32 a = 1; \nint32 b = 2;"

    def test_comment_markers_in_strings_survive(self):
        text = 'string url = 1 [default = "http://x/*y*/"];'
        assert strip_comments(text) == text


class TestBlankLines:
    def test_collapse_and_trailing_newline(self):
        assert normalize_blank_lines("\n\na  \n\n\n\nb\n\n\n") == "a\n\nb\n"

    def test_sanitize_output(self):
        text = """\
syntax = "proto3";
// header comment


message A {

    int32 a = 1;

}
"""
        assert sanitize_proto_output(text) == 'syntax = "proto3";\n\nmessage A {\n    int32 a = 1;\n}\n'

    def test_sanitize_is_idempotent(self):
        text = 'syntax = "proto3";\n\nmessage A {\n    int32 a = 1;\n}\n'
        assert sanitize_proto_output(sanitize_proto_output(text)) == text


class TestPackageQualifiers:
    def test_own_package_prefix_removed(self):
        text = "    game.player.Item a = 1;\n    .game.player.Rank r = 2;\n    game.common.Item c = 3;"
        assert strip_self_package_qualifiers(text, "game.player") == (
            "    Item a = 1;\n    Rank r = 2;\n    game.common.Item c = 3;"
        )

    def test_longer_package_is_not_touched(self):
        text = "    other.game.player.Item a = 1;"
        assert strip_self_package_qualifiers(text, "game.player") == text

    def test_no_package(self):
        assert strip_self_package_qualifiers("p.A a = 1;", "") == "p.A a = 1;"
