"""
Text Sanitizer

The standard PDF fonts only encode single-byte WinAnsi text. Browsers
and phone keyboards routinely insert Unicode space variants (narrow
no-break space from date pickers, non-breaking space from copy/paste)
that fail to encode, so every string is cleaned right before drawing.
"""

import re
from typing import Any

from .exceptions import TextEncodingError

# narrow no-break, no-break, en, em, thin, hair, figure, medium mathematical
UNICODE_SPACES = (
    '\u202f',
    '\u00a0',
    '\u2002',
    '\u2003',
    '\u2009',
    '\u200a',
    '\u2007',
    '\u205f',
)

_UNICODE_SPACE_PATTERN = re.compile('[' + ''.join(UNICODE_SPACES) + ']')

# WinAnsiEncoding is Windows-1252 for practical purposes
PDF_TEXT_ENCODING = 'cp1252'


def sanitize_text(text: Any) -> str:
    """
    Replace Unicode space variants with an ASCII space and trim.

    Non-string input yields an empty string. Idempotent.
    """
    if not text or not isinstance(text, str):
        return ''
    return _UNICODE_SPACE_PATTERN.sub(' ', text).strip()


def ensure_encodable(text: str, field_key: str = None) -> str:
    """
    Check that text can be written with the single-byte PDF fonts.

    Raises:
        TextEncodingError: if any character has no WinAnsi code point
    """
    try:
        text.encode(PDF_TEXT_ENCODING)
    except UnicodeEncodeError as e:
        bad_char = text[e.start:e.end]
        raise TextEncodingError(
            f"Cannot encode {bad_char!r} (U+{ord(bad_char[0]):04X}) "
            f"for field {field_key or 'unknown'}",
            field_key=field_key,
            text=text
        ) from e
    return text
