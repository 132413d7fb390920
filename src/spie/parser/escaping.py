"""Backslash escape primitives used by the request-item tokenizer.

A backslash makes the following character literal. Whether a character is
escaped depends on the run of backslashes directly before it: an odd count
escapes it (``\\:`` is an escaped colon), an even count does not (``\\\\:``
is a literal backslash followed by a real separator).
"""

from __future__ import annotations

from typing import Optional

ESCAPE = "\\"


def is_escaped(token: str, index: int) -> bool:
    """Return ``True`` when the character at *index* is preceded by an odd run of backslashes."""
    count = 0
    position = index - 1
    while position >= 0 and token[position] == ESCAPE:
        count += 1
        position -= 1
    return count % 2 == 1


def first_unescaped(char: str, token: str, start: int = 0) -> Optional[int]:
    """Return the index of the first unescaped *char* in *token*, or ``None``.

    Args:
        char: A single character to look for.
        token: The string to scan.
        start: Index to start scanning from.
    """
    for index in range(start, len(token)):
        if token[index] == char and not is_escaped(token, index):
            return index
    return None


def unescape(value: str) -> str:
    """Drop escaping backslashes in one left-to-right pass.

    A backslash makes the next character literal and is itself removed. A
    trailing backslash with nothing to escape is kept as is.

    Example::

        >>> unescape(r"foo\\:bar")
        'foo:bar'
        >>> unescape("dir\\\\")
        'dir\\\\'
    """
    if ESCAPE not in value:
        return value

    result: list[str] = []
    pending = False
    for char in value:
        if pending:
            result.append(char)
            pending = False
        elif char == ESCAPE:
            pending = True
        else:
            result.append(char)
    if pending:
        result.append(ESCAPE)
    return "".join(result)
