from hypothesis import given
from hypothesis import strategies as st

from strangify.core.definitions import TokenKind
from strangify.engine.tokenizer import skeleton, tokenize


def test_tokenize_classifies_words_spaces_and_punctuation():
    tokens = tokenize("hello, world!")

    assert [(t.kind, t.text, t.start) for t in tokens] == [
        (TokenKind.WORD, "hello", 0),
        (TokenKind.PUNCT, ",", 5),
        (TokenKind.SPACE, " ", 6),
        (TokenKind.WORD, "world", 7),
        (TokenKind.PUNCT, "!", 12),
    ]


def test_underscore_splits_words():
    tokens = tokenize("snake_case")
    assert [t.text for t in tokens] == ["snake", "_", "case"]
    assert tokens[1].kind is TokenKind.PUNCT


def test_whitespace_runs_are_single_tokens():
    tokens = tokenize("a\n\n  b")
    assert tokens[1].kind is TokenKind.SPACE
    assert tokens[1].text == "\n\n  "
    assert tokens[1].end == 5


def test_digits_and_unicode_letters_are_word_characters():
    tokens = tokenize("café 42x")
    assert [t.text for t in tokens if t.kind is TokenKind.WORD] == ["café", "42x"]


def test_skeleton_drops_words_only():
    assert [t.text for t in skeleton("a-b c")] == ["-", " "]


@given(st.text(max_size=200))
def test_tokens_cover_text_contiguously(s):
    tokens = tokenize(s)
    assert "".join(t.text for t in tokens) == s
    position = 0
    for token in tokens:
        assert token.start == position
        position = token.end
