"""
Gateway — Sanitizer Unit Tests
===============================

What:  Tests for the pure operator-strip and markup-neutralization walks.
Why:   These functions are the security boundary for every handler.

What we test:
    ✅ '$'-prefixed and dotted keys removed at every depth
    ✅ Optional key renaming instead of removal
    ✅ '<' escaped in values and keys; strings trimmed
    ✅ Non-string scalars untouched
"""

from gateway.sanitize import is_operator_key, neutralize_markup, sanitize, strip_operators


class TestOperatorKeys:
    def test_dollar_prefix_is_operator(self):
        assert is_operator_key("$gt")
        assert is_operator_key("$where")

    def test_dotted_key_is_operator(self):
        assert is_operator_key("profile.role")
        assert is_operator_key(".hidden")

    def test_plain_keys_are_not_operators(self):
        assert not is_operator_key("email")
        assert not is_operator_key("price$")
        assert not is_operator_key(3)


class TestStripOperators:
    def test_removes_top_level_operator(self):
        cleaned, found = strip_operators({"email": "a@b.c", "$where": "sleep(1000)"})
        assert cleaned == {"email": "a@b.c"}
        assert found is True

    def test_removes_nested_operator_leaving_empty_mapping(self):
        """{"password": {"$ne": null}} must not survive as a match-anything filter."""
        cleaned, found = strip_operators({"email": "x", "password": {"$ne": None}})
        assert cleaned == {"email": "x", "password": {}}
        assert found is True

    def test_recurses_into_lists(self):
        payload = {"filters": [{"$or": [1]}, {"name": "ok", "a.b": 1}]}
        cleaned, found = strip_operators(payload)
        assert cleaned == {"filters": [{}, {"name": "ok"}]}
        assert found is True

    def test_clean_input_is_reported_clean(self):
        payload = {"name": "Widget", "tags": ["a", "b"], "price": 9.5}
        cleaned, found = strip_operators(payload)
        assert cleaned == payload
        assert found is False

    def test_does_not_mutate_input(self):
        payload = {"$gt": 1, "keep": {"$lt": 2}}
        strip_operators(payload)
        assert payload == {"$gt": 1, "keep": {"$lt": 2}}

    def test_replace_with_renames_keys(self):
        cleaned, found = strip_operators({"$gt": 1, "a.b.c": 2}, replace_with="_")
        assert cleaned == {"_gt": 1, "a_b_c": 2}
        assert found is True

    def test_replace_with_never_clobbers_existing_key(self):
        cleaned, _ = strip_operators({"_gt": "real", "$gt": "injected"}, replace_with="_")
        assert cleaned == {"_gt": "real"}

    def test_scalars_pass_through(self):
        assert strip_operators("$gt") == ("$gt", False)
        assert strip_operators(None) == (None, False)


class TestNeutralizeMarkup:
    def test_script_tag_escaped(self):
        result = neutralize_markup('<script>alert("x")</script>')
        assert "<" not in result
        assert result == '&lt;script>alert("x")&lt;/script>'

    def test_strings_are_trimmed(self):
        assert neutralize_markup("  hello  ") == "hello"

    def test_nested_values_and_keys(self):
        result = neutralize_markup({"<b>": ["<img src=x onerror=alert(1)>", 4, True]})
        assert result == {"&lt;b>": ["&lt;img src=x onerror=alert(1)>", 4, True]}

    def test_colliding_keys_keep_first_value(self):
        assert neutralize_markup({"<b": 1, "&lt;b": 2}) == {"&lt;b": 1}
        assert neutralize_markup({"name": "a", " name ": "b"}) == {"name": "a"}

    def test_plain_text_unchanged(self):
        assert neutralize_markup("Fish & Chips > Salad") == "Fish & Chips > Salad"


class TestSanitize:
    def test_strip_then_escape(self):
        cleaned, found = sanitize({"$set": {"admin": True}, "bio": " <script>x</script> "})
        assert cleaned == {"bio": "&lt;script>x&lt;/script>"}
        assert found is True

    def test_none_body(self):
        assert sanitize(None) == (None, False)
