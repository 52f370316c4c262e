# strangify/service/pipeline.py

"""Per-unit transformation pipeline."""

import logging

from strangify.core.domain import StrangifyResult, TextUnit
from strangify.core.exceptions import DecodeError, PipelineError
from strangify.core.ruleset import RuleSet
from strangify.engine.strangifier import strangify

logger = logging.getLogger(__name__)


def decode_unit(unit: TextUnit, rules: RuleSet) -> str:
    """Decodes a unit's bytes with the rule set's encoding.

    Raises:
        DecodeError: If the bytes are not valid in that encoding
    """
    try:
        return unit.content.decode(rules.encoding)
    except UnicodeDecodeError as e:
        raise DecodeError(unit.identity, str(e)) from e


def strangify_unit(unit: TextUnit, rules: RuleSet) -> StrangifyResult:
    """Main entry point for transforming one unit.

    Args:
        unit: Unit to transform
        rules: Rule set loaded at startup

    Returns:
        StrangifyResult with the transformed text. On failure the result
        carries ``error`` metadata and no text; the failure never propagates,
        so one bad unit cannot stop the watch loop.
    """
    try:
        text = decode_unit(unit, rules)
        transformed = strangify(text, rules)
        data = transformed.encode(rules.encoding)

        logger.debug(
            "Unit transformed",
            extra={
                "identity": unit.identity,
                "seq": unit.seq,
                "text_length": len(text),
            },
        )

        return StrangifyResult(
            unit=unit,
            text=transformed,
            data=data,
            metadata={"mode": rules.mode.value, "text_length": len(text)},
        )

    except UnicodeEncodeError as e:
        # e.g. homoglyphs outside a single-byte output encoding
        logger.warning(
            "Skipping unit whose output cannot be encoded",
            extra={
                "identity": unit.identity,
                "seq": unit.seq,
                "encoding": rules.encoding,
                "reason": str(e),
            },
        )
        return StrangifyResult(
            unit=unit,
            metadata={
                "error": "The transformed unit could not be encoded.",
                "status": "skipped",
                "error_type": type(e).__name__,
            },
        )

    except DecodeError as e:
        logger.warning(
            "Skipping unit that cannot be decoded",
            extra={
                "identity": unit.identity,
                "seq": unit.seq,
                "encoding": rules.encoding,
                "reason": e.reason,
            },
        )
        return StrangifyResult(
            unit=unit,
            metadata={
                "error": "The unit could not be decoded.",
                "status": "skipped",
                "error_type": type(e).__name__,
            },
        )

    except Exception as e:
        # Catch-all for unexpected bugs
        error = PipelineError(f"Failed to transform unit {unit.identity}: {e}")
        logger.error(
            "Unexpected error in transformation pipeline",
            exc_info=True,
            extra={"identity": unit.identity, "seq": unit.seq},
        )
        return StrangifyResult(
            unit=unit,
            metadata={
                "error": str(error),
                "status": "failed",
                "error_type": type(error).__name__,
            },
        )
