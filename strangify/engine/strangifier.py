# strangify/engine/strangifier.py

"""Pure transformation engine applying a rule set to text."""

import re

from strangify.core.ruleset import RuleSet
from strangify.engine.tokenizer import WORD_PATTERN
from strangify.logic.transforms import WordTransform, get_transform


def strangify(content: str, rules: RuleSet) -> str:
    """Transforms every eligible word of ``content``.

    Whitespace and punctuation are reproduced unchanged in position and
    count, and every word keeps its length, so the output has the same
    line and paragraph structure as the input.

    Args:
        content: Decoded text of one unit
        rules: Rule set loaded at startup

    Returns:
        The strangified text
    """
    if not content:
        return content

    transform = get_transform(rules)

    def _replace(match: "re.Match[str]") -> str:
        return _transform_word(match.group(), transform, rules)

    return WORD_PATTERN.sub(_replace, content)


def _transform_word(word: str, transform: WordTransform, rules: RuleSet) -> str:
    if len(word) < rules.min_word_length:
        return word
    if word.casefold() in rules.protected_words:
        return word
    return transform.apply(word)


def is_reversible(rules: RuleSet) -> bool:
    """Checks whether applying ``strangify`` twice restores the input.

    Requires a self-inverse mode and a protected word set that is closed
    under the transform: otherwise a word could be turned into a protected
    word on the first pass and then left alone on the second.
    """
    if not rules.self_inverse:
        return False

    transform = get_transform(rules)
    for word in rules.protected_words:
        if len(word) < rules.min_word_length:
            continue
        if transform.apply(word).casefold() not in rules.protected_words:
            return False
    return True
