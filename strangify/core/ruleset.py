# strangify/core/ruleset.py

"""Immutable transformation rule set."""

import codecs
from typing import FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from strangify.core.definitions import SELF_INVERSE_MODES, StrangifyMode


class RuleSet(BaseModel):
    """Parameters of the strangification algorithm.

    Loaded once at process start and passed explicitly to every engine call.
    Instances are frozen and hashable, so they are safe to share between
    worker threads.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="default", description="Human-readable rule set name.")

    mode: StrangifyMode = Field(
        default=StrangifyMode.MIRROR, description="Word transform to apply."
    )

    seed: int = Field(default=0, description="Seed for the scramble mode.")

    min_word_length: int = Field(
        default=2,
        ge=1,
        description="Words shorter than this are reproduced verbatim.",
    )

    preserve_digits: bool = Field(
        default=True, description="Keep digits inside words in place."
    )

    preserve_case: bool = Field(
        default=True,
        description="Keep the upper/lower case pattern attached to positions.",
    )

    anchor_edges: bool = Field(
        default=False,
        description="Keep the first and last movable character of a word in place.",
    )

    protected_words: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Words left verbatim (case-insensitive).",
    )

    homoglyphs: Tuple[Tuple[str, str], ...] = Field(
        default=(), description="Character swap pairs used by the homoglyph mode."
    )

    encoding: str = Field(default="utf-8", description="Codec for unit content.")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the rule set name is not empty."""
        if not v.strip():
            raise ValueError("Rule set name cannot be empty")
        return v

    @field_validator("protected_words")
    @classmethod
    def normalize_protected_words(cls, v: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(w.casefold() for w in v if w.strip())

    @field_validator("homoglyphs")
    @classmethod
    def validate_homoglyphs(
        cls, v: Tuple[Tuple[str, str], ...]
    ) -> Tuple[Tuple[str, str], ...]:
        """Ensure the swap table is an involution of single word characters."""
        seen = set()
        for left, right in v:
            if len(left) != 1 or len(right) != 1:
                raise ValueError(
                    f"Homoglyph pair ({left!r}, {right!r}) must be single characters"
                )
            if left == right:
                raise ValueError(f"Homoglyph pair maps {left!r} to itself")
            for ch in (left, right):
                if not ch.isalnum():
                    raise ValueError(f"Homoglyph character {ch!r} is not alphanumeric")
                if ch in seen:
                    raise ValueError(f"Character {ch!r} appears in more than one pair")
                seen.add(ch)
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            return codecs.lookup(v).name
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e

    @property
    def self_inverse(self) -> bool:
        """True when the configured word transform undoes itself."""
        return self.mode in SELF_INVERSE_MODES
