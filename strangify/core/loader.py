# strangify/core/loader.py

"""Rule set loader for the transformation engine."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from strangify.core.exceptions import ConfigurationError
from strangify.core.ruleset import RuleSet

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "rules.yaml"


class RuleSetLoader:
    """Loads and validates a rule set from YAML.

    The loaded rule set is meant to be created once at startup and handed to
    the engine explicitly; the loader keeps no process-wide state.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else DEFAULT_RULES_PATH

    def load(self) -> RuleSet:
        """Reads the YAML file and builds a RuleSet.

        Raises:
            ConfigurationError: If the file is missing, unparsable, empty or
                fails validation.
        """
        raw = self._read()

        try:
            rules = RuleSet(**raw)
        except ValidationError as e:
            logger.error(
                "Rule set validation failed",
                extra={"rules_path": str(self.path), "error_count": e.error_count()},
            )
            raise ConfigurationError(f"Invalid rule set {self.path}: {e}") from e

        logger.info(
            "Rule set loaded successfully",
            extra={
                "rules_path": str(self.path),
                "rule_set": rules.name,
                "mode": rules.mode.value,
                "protected_count": len(rules.protected_words),
            },
        )
        return rules

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            error_msg = f"Rule set file not found: {self.path}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}", exc_info=True)
            raise ConfigurationError(f"Failed to parse {self.path}: {e}") from e
        except OSError as e:
            logger.error(f"Rule set loading failed: {e}", exc_info=True)
            raise ConfigurationError(f"Failed to read {self.path}: {e}") from e

        if not payload:
            raise ConfigurationError(f"Rule set file is empty: {self.path}")

        if not isinstance(payload, dict):
            raise ConfigurationError(
                f"Rule set file must contain a mapping at top level: {self.path}"
            )

        return payload


def load_rule_set(path: Optional[Union[str, Path]] = None) -> RuleSet:
    """Convenience wrapper around RuleSetLoader."""
    return RuleSetLoader(path).load()
