# strangify/engine/tokenizer.py

"""Splits text into word, whitespace and punctuation tokens."""

import re
from dataclasses import dataclass
from typing import Iterator, List

from strangify.core.definitions import TokenKind

# Words are maximal alphanumeric runs; underscores count as punctuation.
WORD_PATTERN = re.compile(r"[^\W_]+")

_TOKEN_PATTERN = re.compile(
    r"(?P<word>[^\W_]+)|(?P<space>\s+)|(?P<punct>.)", re.DOTALL
)


@dataclass(frozen=True)
class Token:
    """A classified slice of the input text."""

    kind: TokenKind
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def iter_tokens(text: str) -> Iterator[Token]:
    """Yields tokens covering ``text`` completely and in order."""
    for match in _TOKEN_PATTERN.finditer(text):
        yield Token(
            kind=TokenKind(match.lastgroup), text=match.group(), start=match.start()
        )


def tokenize(text: str) -> List[Token]:
    return list(iter_tokens(text))


def skeleton(text: str) -> List[Token]:
    """Returns only the non-word tokens, which a transform must leave intact."""
    return [t for t in iter_tokens(text) if t.kind is not TokenKind.WORD]
