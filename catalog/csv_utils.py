"""Low-level helpers for reading delimited product feeds."""

import io
from typing import IO, Iterator, List, Tuple, Union

from catalog.errors import StreamError

__all__ = ["tokenize_line", "iter_lines", "FeedSource", "REPLACEMENT_CHAR"]

REPLACEMENT_CHAR = "\ufffd"
QUOTE = '"'
DELIMITER = ","

FeedSource = Union[bytes, bytearray, IO[bytes], IO[str]]


def tokenize_line(line: str, delimiter: str = DELIMITER) -> List[str]:
    """Split one feed line into trimmed field values.

    A double quote toggles quoted mode, in which the delimiter is literal.
    Quote characters are dropped and there is no escape for an embedded
    quote: every quote toggles.

    Args:
        line: A single non-blank line (without the line terminator)
        delimiter: Field separator

    Returns:
        Ordered list of field values; the last field is always emitted
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def _as_text_stream(source: FeedSource, encoding: str) -> Tuple[IO[str], bool]:
    """Return a text stream over ``source`` and whether we wrapped it."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    if isinstance(source, io.TextIOBase):
        return source, False
    # Undecodable bytes decode to U+FFFD
    return io.TextIOWrapper(source, encoding=encoding, errors="replace", newline=None), True


def iter_lines(source: FeedSource, encoding: str = "utf-8-sig") -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs, numbering every physical line from 1.

    Line terminators are stripped. Bytes that are not valid in ``encoding``
    decode to U+FFFD. Read failures are raised as :class:`StreamError`.
    """
    try:
        reader, wrapped = _as_text_stream(source, encoding)
    except (OSError, ValueError, AttributeError) as e:
        raise StreamError(f"Cannot open feed for reading: {e}") from e

    try:
        line_number = 0
        while True:
            try:
                line = reader.readline()
            except (OSError, ValueError) as e:
                raise StreamError(
                    f"Failed to read feed after line {line_number}: {e}"
                ) from e
            if not line:
                break
            line_number += 1
            yield line_number, line.rstrip("\r\n")
    finally:
        # Leave the caller's stream open
        if wrapped and not reader.closed:
            reader.detach()
