from protoc_pruner.field_pruner import drop_reserved_statements, prune_message_fields, rename_message_fields


class TestPruneMessageFields:
    def test_keeps_only_named_fields(self):
        definition = "message A {\n    B b = 1;\n    int32 n = 2;\n}"
        assert prune_message_fields(definition, {"b"}) == "message A {\n    B b = 1;\n}"

    def test_labels_maps_and_field_options(self):
        definition = """\
message A {
    repeated string tags = 1;
    map<string, int32> counts = 2;
    optional int64 id = 3 [deprecated = true];
    bytes blob = 4;
}"""
        assert prune_message_fields(definition, {"counts", "id"}) == """\
message A {
    map<string, int32> counts = 2;
    optional int64 id = 3 [deprecated = true];
}"""

    def test_oneof_keeps_surviving_members(self):
        definition = """\
message A {
    oneof pick {
        X x = 1;
        Y y = 2;
    }
    int32 id = 3;
}"""
        assert prune_message_fields(definition, {"x", "id"}) == """\
message A {
    oneof pick {
        X x = 1;
    }
    int32 id = 3;
}"""

    def test_oneof_without_survivors_is_dropped(self):
        definition = """\
message A {
    oneof pick {
        X x = 1;
        Y y = 2;
    }
    int32 id = 3;
}"""
        assert prune_message_fields(definition, {"id"}) == "message A {\n    int32 id = 3;\n}"

    def test_reserved_is_dropped(self):
        definition = "message A {\n    reserved 2, 3;\n    reserved \"old\";\n    int32 a = 1;\n}"
        assert prune_message_fields(definition, {"a"}) == "message A {\n    int32 a = 1;\n}"

    def test_nested_blocks_and_options_pass_through(self):
        definition = """\
message A {
    option deprecated = true;
    message Inner {
        int32 z = 1;
    }
    enum Kind {
        K = 0;
    }
    Inner inner = 1;
    int32 gone = 2;
}"""
        assert prune_message_fields(definition, {"inner"}) == """\
message A {
    option deprecated = true;
    message Inner {
        int32 z = 1;
    }
    enum Kind {
        K = 0;
    }
    Inner inner = 1;
}"""

    def test_empty_keep_set_leaves_empty_body(self):
        definition = "message A {\n    int32 a = 1;\n    int32 b = 2;\n}"
        assert prune_message_fields(definition, set()) == "message A {\n}"

    def test_braces_in_field_options(self):
        definition = 'message A {\n    string s = 1 [default = "{"];\n    int32 t = 2;\n}'
        assert prune_message_fields(definition, {"s"}) == 'message A {\n    string s = 1 [default = "{"];\n}'

    def test_brace_in_comment_before_body(self):
        definition = "message A /* { */ {\n    int32 a = 1;\n\n    int32 b = 2;\n}"
        assert prune_message_fields(definition, {"a"}) == "message A /* { */ {\n    int32 a = 1;\n}"


class TestRenameMessageFields:
    def test_multi_line_message(self):
        definition = """\
message A {
    int32 playerId = 1;
    repeated Item bagItems = 2;
    map<string, int32> scoreTable = 3;
    option deprecated = true;
}"""
        assert rename_message_fields(definition, "snake") == """\
message A {
    int32 player_id = 1;
    repeated Item bag_items = 2;
    map<string, int32> score_table = 3;
    option deprecated = true;
}"""

    def test_single_line_message(self):
        definition = "message B { int32 player_id = 1; string nick_name = 2 [json_name = \"nick\"]; }"
        assert rename_message_fields(definition, "camel") == (
            "message B { int32 PlayerId = 1; string NickName = 2 [json_name = \"nick\"]; }"
        )

    def test_inline_oneof_and_nested_message(self):
        definition = (
            "message A {\n"
            "    oneof v { int32 player_id = 1; string guild_tag = 2; }\n"
            "    message Inner { int64 last_seen = 1; }\n"
            "}"
        )
        assert rename_message_fields(definition, "camel") == (
            "message A {\n"
            "    oneof v { int32 PlayerId = 1; string GuildTag = 2; }\n"
            "    message Inner { int64 LastSeen = 1; }\n"
            "}"
        )

    def test_nested_enum_values_untouched(self):
        definition = "message A {\n    enum Kind { FIRST_KIND = 0; }\n    Kind kind_id = 1;\n}"
        assert rename_message_fields(definition, "camel") == (
            "message A {\n    enum Kind { FIRST_KIND = 0; }\n    Kind KindId = 1;\n}"
        )

    def test_keep_is_identity(self):
        definition = "message A { int32 playerId = 1; }"
        assert rename_message_fields(definition, "keep") == definition


class TestDropReservedStatements:
    def test_single_line_message(self):
        assert drop_reserved_statements("message B { reserved 2; int32 x = 1; }") == (
            "message B { int32 x = 1; }"
        )

    def test_own_line_and_nested(self):
        definition = (
            "message A {\n"
            "    reserved 2, 3;\n"
            "    int32 a = 1;\n"
            "    enum E { reserved \"OLD\"; Z = 0; }\n"
            "}"
        )
        assert drop_reserved_statements(definition) == (
            "message A {\n"
            "    int32 a = 1;\n"
            "    enum E { Z = 0; }\n"
            "}"
        )

    def test_reserved_as_field_name_is_kept(self):
        definition = "message A { int32 reserved_slots = 1; }"
        assert drop_reserved_statements(definition) == definition
