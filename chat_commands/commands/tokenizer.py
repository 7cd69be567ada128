"""Quote-aware tokenizer for slash-command text."""

from typing import List

QUOTE_CHARS = ('"', "'")


def tokenize(text: str) -> List[str]:
    """Split command text into tokens.

    Whitespace separates tokens unless it is inside a quoted span. A span is
    opened by ``"`` or ``'`` and closed by the same character; the other
    quote character is literal inside it. Quote characters are dropped and
    an unterminated quote runs to the end of the text. A single leading
    ``/`` command marker is not part of any token.

    Args:
        text: Raw command text, with or without the leading slash

    Returns:
        Trimmed, non-empty tokens in encounter order
    """
    text = text.strip()
    if text.startswith("/"):
        text = text[1:]

    tokens: List[str] = []
    current: List[str] = []
    quote_char = None

    for char in text:
        if quote_char is None and char in QUOTE_CHARS:
            quote_char = char
        elif quote_char is not None and char == quote_char:
            quote_char = None
        elif quote_char is None and char.isspace():
            _flush(current, tokens)
        else:
            current.append(char)

    _flush(current, tokens)
    return tokens


def _flush(current: List[str], tokens: List[str]) -> None:
    token = "".join(current).strip()
    if token:
        tokens.append(token)
    current.clear()
