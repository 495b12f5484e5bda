"""
Unit tests for recovery query synthesis.
"""

from stateful_subscriptions.core.recovery import build_recovery_query, encode_literal
from stateful_subscriptions.core.state import TrackedSubscription


def _tracked(**kwargs):
    defaults = {
        "root_name": "onItems",
        "identity": "onItems",
        "key": "offset",
        "fields": ["id", "offset", "data"],
    }
    defaults.update(kwargs)
    return TrackedSubscription(**defaults)


def test_encode_literal():
    assert encode_literal("important") == '"important"'
    assert encode_literal('say "hi"') == '"say \\"hi\\""'
    assert encode_literal(10) == "10"
    assert encode_literal(1.5) == "1.5"
    assert encode_literal(True) == "true"
    assert encode_literal(None) == "null"
    assert encode_literal([1, "a"]) == '[1,"a"]'
    assert encode_literal({"a": 1, "b": [True]}) == '{"a":1,"b":[true]}'


def test_query_without_cursor_has_no_arguments():
    query = build_recovery_query(_tracked())

    assert query == "subscription { onItems { id, offset, data } }"


def test_query_with_cursor():
    query = build_recovery_query(_tracked(last_value=42))

    assert query == "subscription { onItems(offset: 42) { id, offset, data } }"


def test_cursor_comes_before_fixed_args():
    tracked = _tracked(last_value=42, fixed_args={"filter": "important", "limit": 10})

    query = build_recovery_query(tracked)

    assert query == 'subscription { onItems(offset: 42, filter: "important", limit: 10) { id, offset, data } }'


def test_fixed_args_without_cursor():
    tracked = _tracked(fixed_args={"limit": 10})

    assert build_recovery_query(tracked) == "subscription { onItems(limit: 10) { id, offset, data } }"


def test_alias_prefix():
    tracked = _tracked(identity="Feed", alias="Feed", last_value="abc")

    query = build_recovery_query(tracked)

    assert query == 'subscription { Feed: onItems(offset: "abc") { id, offset, data } }'


def test_structured_fixed_args():
    tracked = _tracked(
        last_value=0,
        fixed_args={"active": True, "nothing": None, "tags": ["a", "b"], "where": {"kind": "x"}},
    )

    query = build_recovery_query(tracked)

    assert query == (
        'subscription { onItems(offset: 0, active: true, nothing: null, '
        'tags: ["a","b"], where: {"kind":"x"}) { id, offset, data } }'
    )
