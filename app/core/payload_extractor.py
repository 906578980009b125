"""Detection of action signals in chat replies.

The remote agent announces a finished action in one of two ways: a JSON
object such as ``{"ready": true, "payload": {...}}`` embedded somewhere in its
free-text reply, or separate ``ready``/``payload``/``modal_endpoint`` fields in
the response body. Both are turned into the same ``ActionSignal``.
"""

import json
import re
import logging
from bisect import bisect_left
from typing import Optional, List, Tuple, Dict, Any

from app.core.exceptions import ExtractionFailure
from app.models.chat import ChatReply
from app.models.submission import ActionSignal

logger = logging.getLogger(__name__)

READY_MARKER = re.compile(r'"ready"\s*:\s*true')
ENDPOINT_KEYS = ("modal_endpoint", "target_endpoint")


def _carries_marker(markers: List[Tuple[int, int]], start: int, end: int) -> bool:
    """True when a ready marker lies entirely within ``text[start:end]``."""
    index = bisect_left(markers, (start, start))
    return index < len(markers) and markers[index][1] <= end


def find_signal_span(text: str) -> Optional[Tuple[int, int]]:
    """
    Locates the first, innermost balanced ``{...}`` span carrying the ready marker.
    Returns ``(start, end)`` offsets or None when no span qualifies.

    The text is read once. Braces and quotes inside JSON strings are skipped,
    and quotes in prose outside any brace are ignored.
    """
    markers = [(match.start(), match.end()) for match in READY_MARKER.finditer(text)]
    if not markers:
        return None

    open_braces: List[int] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == "{":
            open_braces.append(index)
        elif not open_braces:
            continue
        elif char == '"':
            in_string = True
        elif char == "}":
            start = open_braces.pop()
            # Spans close innermost first, and disjoint ones in document order
            if _carries_marker(markers, start, index + 1):
                return start, index + 1
    return None


def _parse_span(fragment: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(fragment)
    except ValueError as e:
        raise ExtractionFailure(f"Embedded signal is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ExtractionFailure("Embedded signal is not a JSON object")
    return parsed


def extract_signal(text: Optional[str]) -> Optional[ActionSignal]:
    """Parses the action signal embedded in a reply text, if any."""
    if not text:
        return None

    span = find_signal_span(text)
    if span is None:
        return None

    try:
        parsed = _parse_span(text[span[0] : span[1]])
    except ExtractionFailure as e:
        logger.debug(f"Treating reply as plain text: {e}")
        return None

    payload = parsed.get("payload")
    if parsed.get("ready") is not True or not isinstance(payload, dict):
        logger.debug("Ready marker found without a usable payload")
        return None

    target = next(
        (parsed[key] for key in ENDPOINT_KEYS if isinstance(parsed.get(key), str)),
        None,
    )
    return ActionSignal(payload=payload, target_endpoint=target or None, source="text")


class TextEmbeddedSignalSource:
    """Finds a signal embedded in the free-text ``response`` of a reply."""

    def detect(self, reply: ChatReply) -> Optional[ActionSignal]:
        return extract_signal(reply.response)


class StructuredFieldSignalSource:
    """Reads a signal returned in dedicated response fields."""

    def detect(self, reply: ChatReply) -> Optional[ActionSignal]:
        if reply.ready is not True or not isinstance(reply.payload, dict):
            return None
        return ActionSignal(
            payload=reply.payload,
            target_endpoint=reply.modal_endpoint or None,
            source="structured",
        )


SIGNAL_SOURCES = (StructuredFieldSignalSource(), TextEmbeddedSignalSource())


def detect_signal(reply: ChatReply) -> Optional[ActionSignal]:
    """Returns the first signal any source finds in the reply."""
    for source in SIGNAL_SOURCES:
        signal = source.detect(reply)
        if signal is not None:
            return signal
    return None
