"""Query string parsing tests."""

from gateway.querystring import encode_query, parse_query


class TestParseQuery:
    def test_flat_values(self):
        assert parse_query("page=2&sort=price") == {"page": "2", "sort": "price"}

    def test_repeated_keys_become_list(self):
        assert parse_query("tag=a&tag=b&tag=c") == {"tag": ["a", "b", "c"]}

    def test_bracket_nesting(self):
        assert parse_query("price[gte]=5&price[lte]=10") == {"price": {"gte": "5", "lte": "10"}}

    def test_operator_smuggled_through_brackets(self):
        assert parse_query("password[%24ne]=x") == {"password": {"$ne": "x"}}

    def test_empty_brackets_append(self):
        assert parse_query("ids[]=1&ids[]=2") == {"ids": ["1", "2"]}

    def test_malformed_brackets_kept_literal(self):
        assert parse_query("a[b]c=1") == {"a[b]c": "1"}

    def test_blank_values_kept(self):
        assert parse_query("q=") == {"q": ""}

    def test_plain_value_after_mapping_kept(self):
        assert parse_query("a[b]=1&a=2") == {"a": {"b": "1", "": "2"}}

    def test_mapping_after_plain_value_kept(self):
        assert parse_query("a=2&a[b]=1") == {"a": {"": "2", "b": "1"}}

    def test_appended_value_after_mapping_kept(self):
        assert parse_query("a[b]=1&a[]=2") == {"a": {"b": "1", "": "2"}}


class TestEncodeQuery:
    def test_round_trip_nested(self):
        query = {"price": {"gte": "5"}, "tag": ["a", "b"], "q": "x y"}
        assert parse_query(encode_query(query)) == query

    def test_merged_plain_value_survives_reencoding(self):
        query = parse_query("a[b]=1&a=2")
        assert parse_query(encode_query(query)) == query
