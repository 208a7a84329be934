"""
Variable extraction from response bodies.
"""

import logging
from typing import List, Sequence

from .exceptions import QueryError
from .models import ExtractedVariable, VariableExtraction
from .path_query import evaluate, value_to_string

logger = logging.getLogger(__name__)


def extract_variables(rules: Sequence[VariableExtraction], body: str) -> List[ExtractedVariable]:
    """
    Apply the enabled extraction rules to a response body.

    The caller decides what to do with the outcome; nothing here touches the
    run context.

    Args:
        rules: Extraction rules in configured order
        body: Response body text

    Returns:
        One ExtractedVariable per enabled rule, in rule order
    """
    extracted = []
    for rule in rules:
        if not rule.enabled:
            continue

        try:
            value = evaluate(body, rule.json_path)
        except QueryError as e:
            logger.debug("Extraction of %s failed: %s", rule.variable_name, e)
            extracted.append(
                ExtractedVariable(
                    variable_name=rule.variable_name,
                    json_path=rule.json_path,
                    value="",
                    success=False,
                    error=str(e),
                )
            )
            continue

        if value is None:
            extracted.append(
                ExtractedVariable(
                    variable_name=rule.variable_name,
                    json_path=rule.json_path,
                    value="",
                    success=False,
                    error="Path returned null",
                )
            )
        else:
            extracted.append(
                ExtractedVariable(
                    variable_name=rule.variable_name,
                    json_path=rule.json_path,
                    value=value_to_string(value),
                    success=True,
                )
            )

    return extracted
