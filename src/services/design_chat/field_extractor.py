"""Best-effort extraction of one string field from a partially streamed JSON object.

The model streams its reply as a single JSON document. While the document is
still arriving we want the growing value of its ``message`` field so the
client can render it as plain streamed text::

    >>> extract_field('{"message": "Hel', "message")
    'Hel'
    >>> extract_field('{"message": "a\\\\nb"}', "message")
    'a\\nb'

``extract_field`` is a pure function of the buffer. For growing prefixes of
the same text it returns values that only ever extend each other: anything
that could still change meaning when more text arrives (a lone trailing
backslash, a ``\\uXXXX`` escape with fewer than four hex digits, a high
surrogate whose partner has not arrived) is withheld, never guessed.
"""

from __future__ import annotations

import json


# JSON single-character escapes. Anything else after a backslash is kept
# verbatim (backslash included) rather than rejected.
ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "/": "/",
    "b": "\b",
    "f": "\f",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_REPLACEMENT_CHAR = "\ufffd"


def extract_field(buffer: str, field_name: str) -> str | None:
    """Return the decoded (possibly partial) value of ``field_name``, or ``None``.

    Only keys of the outermost object count, so a nested ``metadata.message``
    is never mistaken for the reply text. ``None`` means the field is not
    visible yet (or is visible but empty).
    """
    # Fast path: the buffer is already a complete document.
    try:
        parsed = json.loads(buffer)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        value = parsed.get(field_name)
        if isinstance(value, str) and value:
            return value

    start = _find_top_level_string_value(buffer, field_name)
    if start is None:
        return None

    decoded = _decode_partial_string(buffer, start)
    return decoded or None


def _find_top_level_string_value(text: str, field_name: str) -> int | None:
    """Index just past the opening quote of ``field_name``'s string value.

    Scans braces and brackets outside string literals so only keys at depth
    one match. Text before the first ``{`` (a markdown fence, say) is skipped.
    """
    depth = 0
    i = 0
    end = len(text)

    while i < end:
        ch = text[i]
        if ch == '"':
            close = _skip_string(text, i + 1)
            if close is None:
                return None
            if depth == 1:
                colon = _skip_whitespace(text, close)
                is_key = colon < end and text[colon] == ":"
                if is_key and text[i + 1 : close - 1] == field_name:
                    value = _skip_whitespace(text, colon + 1)
                    if value >= end:
                        return None
                    if text[value] == '"':
                        return value + 1
            i = close
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        i += 1

    return None


def _skip_string(text: str, pos: int) -> int | None:
    """Index just past the closing quote, or ``None`` while the string is open."""
    i = pos
    end = len(text)
    while i < end:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return None


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\r\n":
        pos += 1
    return pos


def _decode_partial_string(text: str, start: int) -> str:
    """Decode a JSON string body from ``start`` up to its closing quote or EOF."""
    out: list[str] = []
    i = start
    end = len(text)

    while i < end:
        ch = text[i]

        if ch == '"':
            break

        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        # Escape sequence
        if i + 1 >= end:
            # Trailing backslash: wait for the next character.
            break
        code = text[i + 1]

        if code != "u":
            out.append(ESCAPES.get(code, "\\" + code))
            i += 2
            continue

        hex_part = text[i + 2 : i + 6]
        if len(hex_part) < 4 and all(c in _HEX_DIGITS for c in hex_part):
            # \uXXXX still arriving
            break
        if len(hex_part) < 4 or not all(c in _HEX_DIGITS for c in hex_part):
            out.append("\\u")
            i += 2
            continue

        code_point = int(hex_part, 16)
        i += 6

        if 0xD800 <= code_point <= 0xDBFF:
            low = _read_low_surrogate(text, i)
            if low is None:
                break
            if low == -1:
                out.append(_REPLACEMENT_CHAR)
                continue
            code_point = 0x10000 + ((code_point - 0xD800) << 10) + (low - 0xDC00)
            i += 6
        elif 0xDC00 <= code_point <= 0xDFFF:
            out.append(_REPLACEMENT_CHAR)
            continue

        out.append(chr(code_point))

    return "".join(out)


def _read_low_surrogate(text: str, pos: int) -> int | None:
    """Look for a ``\\uDC00``-``\\uDFFF`` escape at ``pos``.

    Returns the code point, ``None`` if the text ends before it can be
    decided, or ``-1`` if something other than a low surrogate follows.
    """
    tail = text[pos : pos + 6]
    expected_prefix = "\\u"

    if len(tail) < 6:
        head, digits = tail[:2], tail[2:]
        if expected_prefix.startswith(head) and all(c in _HEX_DIGITS for c in digits):
            return None
        return -1

    if not tail.startswith(expected_prefix):
        return -1
    digits = tail[2:]
    if not all(c in _HEX_DIGITS for c in digits):
        return -1
    value = int(digits, 16)
    if 0xDC00 <= value <= 0xDFFF:
        return value
    return -1
