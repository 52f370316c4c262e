# strangify/logic/transforms.py

"""Word transform strategies, one per strangify mode."""

import hashlib
import logging
import random
from abc import ABC, abstractmethod
from typing import Dict, List

from strangify.core.definitions import StrangifyMode
from strangify.core.ruleset import RuleSet

logger = logging.getLogger(__name__)

_ASCII_LOWER = "abcdefghijklmnopqrstuvwxyz"
_ASCII_UPPER = _ASCII_LOWER.upper()
_ASCII_DIGITS = "0123456789"

_ROT13_TABLE = str.maketrans(
    _ASCII_LOWER + _ASCII_UPPER,
    _ASCII_LOWER[13:] + _ASCII_LOWER[:13] + _ASCII_UPPER[13:] + _ASCII_UPPER[:13],
)
_ROT5_TABLE = str.maketrans(_ASCII_DIGITS, _ASCII_DIGITS[5:] + _ASCII_DIGITS[:5])


class TransformLogic:
    """Utility methods shared by the word transforms."""

    @staticmethod
    def movable_positions(word: str, rules: RuleSet) -> List[int]:
        """Returns the indices of characters a transform may change.

        Letters are always movable; other alphanumerics (digits) only when
        the rule set does not preserve digits. With ``anchor_edges`` the
        first and last movable character are excluded.
        """
        positions = [
            i
            for i, ch in enumerate(word)
            if ch.isalpha() or (not rules.preserve_digits and ch.isalnum())
        ]
        if rules.anchor_edges:
            positions = positions[1:-1]
        return positions

    @staticmethod
    def match_case(template: str, ch: str) -> str:
        """Gives ``ch`` the case of ``template`` without changing its length."""
        if template.isupper() and not ch.isupper():
            candidate = ch.upper()
        elif template.islower() and not ch.islower():
            candidate = ch.lower()
        else:
            return ch
        return candidate if len(candidate) == 1 else ch

    @staticmethod
    def case_stable(ch: str) -> bool:
        """Checks that ``ch`` survives a trip to the other case and back.

        Caseless characters qualify when ``upper``/``lower`` leave them alone.
        Cased ones need single-character counterparts that map back, which
        rules out e.g. final sigma, long s, dotless i, titlecase digraphs and
        ligatures.
        """
        upper, lower = ch.upper(), ch.lower()
        if len(upper) != 1 or len(lower) != 1:
            return False
        if ch.isupper():
            return lower != ch and lower.islower() and lower.upper() == ch
        if ch.islower():
            return upper != ch and upper.isupper() and upper.lower() == ch
        return upper == ch and lower == ch

    @staticmethod
    def place(
        word: str, positions: List[int], chars: List[str], rules: RuleSet
    ) -> str:
        """Writes ``chars`` into ``positions`` of ``word``.

        When the rule set preserves case, each written character takes the
        case of the character it replaces. Words holding a character that
        is not case-stable are left with the case their characters carry,
        so a self-inverse transform stays self-inverse.
        """
        match = rules.preserve_case and all(
            TransformLogic.case_stable(word[i]) for i in positions
        )
        out = list(word)
        for i, ch in zip(positions, chars):
            if match:
                ch = TransformLogic.match_case(word[i], ch)
            out[i] = ch
        return "".join(out)


class WordTransform(ABC):
    """Base class for length-preserving word transforms."""

    mode: StrangifyMode

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules

    @abstractmethod
    def apply(self, word: str) -> str:
        """Transforms a single word token.

        Args:
            word: A maximal run of alphanumeric characters

        Returns:
            The transformed word, same length as the input
        """
        pass


class MirrorTransform(WordTransform):
    """Reverses the movable characters of a word. Self-inverse."""

    mode = StrangifyMode.MIRROR

    def apply(self, word: str) -> str:
        positions = TransformLogic.movable_positions(word, self.rules)
        if len(positions) < 2:
            return word
        chars = [word[i] for i in reversed(positions)]
        return TransformLogic.place(word, positions, chars, self.rules)


class Rot13Transform(WordTransform):
    """Rotates ASCII letters by 13 and, if digits move, ASCII digits by 5."""

    mode = StrangifyMode.ROT13

    def apply(self, word: str) -> str:
        positions = TransformLogic.movable_positions(word, self.rules)
        if not positions:
            return word
        out = list(word)
        for i in positions:
            out[i] = word[i].translate(_ROT13_TABLE).translate(_ROT5_TABLE)
        return "".join(out)


class HomoglyphTransform(WordTransform):
    """Swaps characters with their lookalikes from the rule set's table."""

    mode = StrangifyMode.HOMOGLYPH

    def __init__(self, rules: RuleSet) -> None:
        super().__init__(rules)
        self._table: Dict[str, str] = {}
        for left, right in rules.homoglyphs:
            self._table[left] = right
            self._table[right] = left

        if not self._table:
            logger.warning(
                "Homoglyph mode selected with an empty swap table",
                extra={"rule_set": rules.name},
            )

    def apply(self, word: str) -> str:
        positions = TransformLogic.movable_positions(word, self.rules)
        if not positions:
            return word
        out = list(word)
        for i in positions:
            out[i] = self._table.get(word[i], word[i])
        return "".join(out)


class ScrambleTransform(WordTransform):
    """Shuffles the movable characters with a per-word deterministic seed.

    The seed is derived from the rule set seed and the word itself, so the
    same word always scrambles the same way across processes.
    """

    mode = StrangifyMode.SCRAMBLE

    def apply(self, word: str) -> str:
        positions = TransformLogic.movable_positions(word, self.rules)
        if len(positions) < 2:
            return word
        chars = [word[i] for i in positions]
        rng = random.Random(self._seed_for(word))
        rng.shuffle(chars)
        return TransformLogic.place(word, positions, chars, self.rules)

    def _seed_for(self, word: str) -> int:
        material = f"{self.rules.seed}\x00{word}".encode("utf-8", "surrogatepass")
        digest = hashlib.blake2b(material, digest_size=8).digest()
        return int.from_bytes(digest, "big")


# Cache for transform instances, keyed by the (hashable) rule set
_transform_cache: Dict[RuleSet, WordTransform] = {}


def get_transform(rules: RuleSet) -> WordTransform:
    """Factory method returning the word transform for a rule set.

    Instances are cached per rule set and are stateless after construction,
    so they can be shared between worker threads.
    """
    cached = _transform_cache.get(rules)
    if cached is not None:
        return cached

    lookup = {
        StrangifyMode.MIRROR: MirrorTransform,
        StrangifyMode.ROT13: Rot13Transform,
        StrangifyMode.HOMOGLYPH: HomoglyphTransform,
        StrangifyMode.SCRAMBLE: ScrambleTransform,
    }

    instance = lookup[rules.mode](rules)
    _transform_cache[rules] = instance
    return instance
