"""
Input checks run before any prompt is built.

A failed check means no model request is issued; the caller shows the
error text inline on the feature's result surface instead.
"""

from typing import Dict, List
import logging

logger = logging.getLogger(__name__)


COMPLIANCE_EMPTY_MSG = "Schema and Query cannot be empty."
CLASSIFICATION_EMPTY_MSG = "Schema and Data Sample cannot be empty."


class InputValidationError(ValueError):
    """A required workbench input is empty or whitespace-only."""

    def __init__(self, message: str, missing: List[str]):
        super().__init__(message)
        self.missing = missing


def _blank_fields(fields: Dict[str, str]) -> List[str]:
    return [name for name, value in fields.items() if not (value or "").strip()]


def require_non_empty(message: str, **fields: str) -> None:
    """Raise InputValidationError carrying `message` if any field is blank."""
    missing = _blank_fields(fields)
    if missing:
        logger.debug("Rejected input, blank fields: %s", ", ".join(missing))
        raise InputValidationError(message, missing)


def check_compliance_inputs(schema: str, query: str) -> None:
    require_non_empty(COMPLIANCE_EMPTY_MSG, schema=schema, query=query)


def check_classification_inputs(schema: str, sample: str) -> None:
    require_non_empty(CLASSIFICATION_EMPTY_MSG, schema=schema, sample=sample)
