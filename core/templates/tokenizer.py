"""Template tokenizer splitting literal text from ``{{ ... }}`` tokens."""

from __future__ import annotations

from core.templates.models import Span
from core.utils.errors import TemplateSyntaxError

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"


def tokenize(text: str) -> list[Span]:
    """Split template text into literal and interpolation spans.

    Rules:
    - Delimiters are exactly ``{{`` and ``}}`` and do not nest.
    - Quotes are not special outside interpolation tokens.
    - A ``}}`` without an opening ``{{`` stays literal text.
    - Interpolation span text has its delimiters removed and is left unstripped
      so offsets stay accurate; the parser trims it.

    Raises:
        TemplateSyntaxError: when a ``{{`` has no matching ``}}``.
    """

    spans: list[Span] = []
    cursor = 0
    length = len(text)

    while cursor < length:
        open_at = text.find(OPEN_DELIMITER, cursor)
        if open_at < 0:
            spans.append(Span("literal", text[cursor:], cursor, length))
            break

        if open_at > cursor:
            spans.append(Span("literal", text[cursor:open_at], cursor, open_at))

        body_start = open_at + len(OPEN_DELIMITER)
        close_at = text.find(CLOSE_DELIMITER, body_start)
        if close_at < 0:
            raise TemplateSyntaxError(
                f"Unterminated interpolation starting at offset {open_at}",
                template=text,
                position=open_at,
            )

        spans.append(Span("interpolation", text[body_start:close_at], body_start, close_at))
        cursor = close_at + len(CLOSE_DELIMITER)

    return spans
