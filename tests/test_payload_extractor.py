"""Tests for finding action signals in chat replies."""

import time

import pytest

from app.core.payload_extractor import (
    detect_signal,
    extract_signal,
    find_signal_span,
)
from app.models.chat import ChatReply


def test_signal_inside_prose():
    """The scenario reply yields exactly the embedded payload."""
    signal = extract_signal('Done! {"ready": true, "payload": {"order_id": 42}}')
    assert signal is not None
    assert signal.payload == {"order_id": 42}
    assert signal.target_endpoint is None
    assert signal.source == "text"


@pytest.mark.parametrize(
    "text",
    [
        "Sure, what size would you like?",
        "",
        "Use the {name} placeholder in the template.",
        '{"ready": false, "payload": {"order_id": 42}}',
        '{"payload": {"order_id": 42}}',
        '{"ready": "true", "payload": {"order_id": 42}}',
        '{"ready": 1, "payload": {"order_id": 42}}',
    ],
)
def test_replies_without_a_ready_true_marker(text):
    assert extract_signal(text) is None


def test_none_text():
    assert extract_signal(None) is None


def test_whitespace_around_marker_is_ignored():
    text = 'ok {\n  "ready"  :\ttrue,\n  "payload": {"a": [1, 2]}\n} thanks'
    assert extract_signal(text).payload == {"a": [1, 2]}


def test_malformed_json_fails_closed():
    assert extract_signal('Done! {"ready": true, "payload": {order_id: 42}}') is None


def test_truncated_json_fails_closed():
    assert extract_signal('Done! {"ready": true, "payload": {"order_id": 42}') is None


def test_missing_payload_is_plain_text():
    assert extract_signal('{"ready": true}') is None
    assert extract_signal('{"ready": true, "payload": [1, 2]}') is None


def test_first_signal_in_document_order_wins():
    text = (
        'First {"ready": true, "payload": {"n": 1}} '
        'then {"ready": true, "payload": {"n": 2}}'
    )
    assert extract_signal(text).payload == {"n": 1}


def test_innermost_span_carrying_the_marker_is_used():
    text = 'Result: {"meta": {"v": 1}, "result": {"ready": true, "payload": {"id": 7}}}'
    assert extract_signal(text).payload == {"id": 7}


def test_braces_inside_strings_do_not_break_balancing():
    text = 'Here: {"ready": true, "payload": {"note": "use } and { freely"}}'
    assert extract_signal(text).payload == {"note": "use } and { freely"}


def test_escaped_marker_inside_a_string_does_not_match():
    text = '{"note": "say \\"ready\\": true to finish"}'
    assert find_signal_span(text) is None
    assert extract_signal(text) is None


def test_earlier_unrelated_braces_are_skipped():
    text = 'Fill {name} in. {"ready": true, "payload": {"name": "Ada"}}'
    assert extract_signal(text).payload == {"name": "Ada"}


def test_embedded_endpoint_becomes_target():
    text = '{"ready": true, "payload": {}, "modal_endpoint": "https://run.test/x"}'
    assert extract_signal(text).target_endpoint == "https://run.test/x"


def test_structured_fields_are_detected():
    reply = ChatReply(
        response="All set, please confirm.",
        ready=True,
        payload={"order_id": 42},
        modal_endpoint="https://run.test/orders",
    )
    signal = detect_signal(reply)
    assert signal.source == "structured"
    assert signal.payload == {"order_id": 42}
    assert signal.target_endpoint == "https://run.test/orders"


@pytest.mark.parametrize("ready", [False, "true", 1, None])
def test_structured_fields_need_a_literal_true(ready):
    reply = ChatReply(response="Not yet.", ready=ready, payload={"order_id": 42})
    assert detect_signal(reply) is None


def test_text_signal_detected_through_reply():
    reply = ChatReply(response='Done! {"ready": true, "payload": {"order_id": 42}}')
    assert detect_signal(reply).payload == {"order_id": 42}


def test_plain_reply_has_no_signal():
    assert detect_signal(ChatReply(response="How can I help?")) is None


def test_braces_inside_string_values_around_the_marker():
    text = 'Done! {"note": "press {", "ready": true, "payload": {"cmd": "a}"}}'
    signal = extract_signal(text)
    assert signal is not None
    assert signal.payload == {"cmd": "a}"}


def test_quotes_in_prose_outside_braces_are_ignored():
    text = 'He said "hi" and then {"ready": true, "payload": {"n": 1}}'
    assert extract_signal(text).payload == {"n": 1}


def test_many_unbalanced_braces_are_scanned_quickly():
    text = "{" * 20000 + ' {"ready": true, "payload": {"a": 1}}'
    started = time.monotonic()
    signal = extract_signal(text)
    elapsed = time.monotonic() - started
    assert signal.payload == {"a": 1}
    assert elapsed < 1.0
