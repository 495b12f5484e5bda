"""
Unit tests for the proxy message router.
"""

import json
import logging

import pytest

from stateful_subscriptions import SubscriptionMessageRouter


@pytest.fixture
def router(registry):
    return SubscriptionMessageRouter(registry)


def _start(op_id, query, variables=None, op_type="start"):
    payload = {"query": query}
    if variables is not None:
        payload["variables"] = variables
    return json.dumps({"id": op_id, "type": op_type, "payload": payload})


def test_connection_init_is_recorded(router, registry):
    router.handle_client_message("c1", json.dumps({"type": "connection_init", "payload": {"token": "abc"}}))

    assert registry.get_client("c1").connection_init_payload == {"token": "abc"}


def test_start_registers_subscription(router, registry):
    message = router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }", {"lastValue": 5}))

    tracked = registry.get_subscription("c1", "onItems")
    assert message["type"] == "start"
    assert tracked.transport_id == "1"
    assert tracked.message_type == "start"
    assert tracked.last_value == 5


def test_subscribe_registers_subscription(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }", op_type="subscribe"))

    assert registry.get_subscription("c1", "onItems").message_type == "subscribe"


def test_accepts_decoded_messages(router, registry):
    router.handle_client_message("c1", {"id": "1", "type": "start", "payload": {"query": "subscription { onItems { id } }"}})

    assert registry.get_subscription("c1", "onItems") is not None


@pytest.mark.parametrize("stop_type", ["stop", "complete"])
def test_stop_removes_subscription(router, registry, stop_type):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }"))

    router.handle_client_message("c1", json.dumps({"id": "1", "type": stop_type}))

    assert registry.get_client_subscriptions("c1") == {}


def test_connection_terminate_removes_all(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { A: onItems { id offset } }"))
    router.handle_client_message("c1", _start("2", "subscription { B: onItems { id offset } }"))

    router.handle_client_message("c1", json.dumps({"type": "connection_terminate"}))

    assert registry.get_client_subscriptions("c1") == {}


def test_start_without_query_is_logged_and_skipped(router, registry, caplog):
    caplog.set_level(logging.ERROR)

    router.handle_client_message("c1", json.dumps({"id": "1", "type": "start", "payload": {}}))

    assert registry.get_client_subscriptions("c1") == {}
    assert any("Error parsing GraphQL query" in record.getMessage() for record in caplog.records)


def test_invalid_client_json_is_ignored(router, registry, caplog):
    caplog.set_level(logging.WARNING)

    assert router.handle_client_message("c1", "not json") is None
    assert router.handle_client_message("c1", "[1, 2]") is None
    assert registry.client_count == 0
    assert any("Invalid JSON" in record.getMessage() for record in caplog.records)


def test_data_message_updates_cursor_and_strips_injected_key(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id } }"))
    raw = json.dumps({"id": "1", "type": "data", "payload": {"data": {"onItems": {"id": "a", "offset": 9}}}})

    forwarded = router.handle_server_message("c1", raw)

    assert json.loads(forwarded) == {"id": "1", "type": "data", "payload": {"data": {"onItems": {"id": "a"}}}}
    assert registry.get_subscription("c1", "onItems").last_value == 9


def test_next_message_updates_cursor(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }", op_type="subscribe"))
    raw = json.dumps({"id": "1", "type": "next", "payload": {"data": {"onItems": {"id": "a", "offset": 3}}}})

    router.handle_server_message("c1", raw)

    assert registry.get_subscription("c1", "onItems").last_value == 3


def test_other_server_messages_pass_through(router):
    raw = json.dumps({"type": "connection_ack"})

    assert router.handle_server_message("c1", raw) is raw
    assert router.handle_server_message("c1", "garbage") == "garbage"


def test_result_without_data_passes_through(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }"))
    raw = json.dumps({"id": "1", "type": "data", "payload": {"errors": [{"message": "boom"}]}})

    assert router.handle_server_message("c1", raw) is raw


def test_reconnect_restores_subscriptions(router, socket):
    router.handle_client_message("c1", json.dumps({"type": "connection_init", "payload": {"token": "abc"}}))
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }"))
    router.handle_server_message("c1", json.dumps({"id": "1", "type": "data", "payload": {"data": {"onItems": {"id": "a", "offset": 11}}}}))

    router.handle_reconnect("c1", socket)

    assert socket.messages == [
        {"type": "connection_init", "payload": {"token": "abc"}},
        {"id": "1", "type": "start", "payload": {"query": "subscription { onItems(offset: 11) { id, offset } }"}},
    ]


def test_disconnect_keeps_state_unless_forgotten(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }"))

    router.handle_disconnect("c1")
    assert registry.get_client("c1") is not None

    router.handle_disconnect("c1", forget=True)
    assert registry.get_client("c1") is None


def test_start_with_non_object_variables_is_ignored(router, registry, caplog):
    with caplog.at_level(logging.WARNING, logger="stateful_subscriptions.websocket.router"):
        message = router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }", ["x"]))

    assert message["type"] == "start"
    assert registry.get_client_subscriptions("c1") == {}
    assert "non-object variables" in caplog.text


def test_start_with_list_id_is_ignored(router, registry, caplog):
    with caplog.at_level(logging.WARNING, logger="stateful_subscriptions.websocket.router"):
        router.handle_client_message("c1", _start(["1"], "subscription { onItems { id offset } }"))

    assert registry.get_client_subscriptions("c1") == {}
    assert "invalid id" in caplog.text


def test_stop_with_list_id_is_ignored(router, registry):
    router.handle_client_message("c1", _start("1", "subscription { onItems { id offset } }"))

    router.handle_client_message("c1", json.dumps({"id": ["1"], "type": "stop"}))

    assert "onItems" in registry.get_client_subscriptions("c1")


def test_numeric_id_is_tracked_as_string(router, registry):
    router.handle_client_message("c1", _start(7, "subscription { onItems { id offset } }"))

    assert registry.get_subscription("c1", "onItems").transport_id == "7"

    router.handle_client_message("c1", json.dumps({"id": 7, "type": "stop"}))

    assert registry.get_client_subscriptions("c1") == {}
