"""
JSONPath evaluation against response bodies.
"""

import json
import logging
import re
from typing import Any

from jsonpath_ng.exceptions import JSONPathError
from jsonpath_ng.ext import parse

from .exceptions import InvalidJsonError, InvalidPathError

logger = logging.getLogger(__name__)


def evaluate(json_text: str, path: str) -> Any:
    """
    Evaluate a JSONPath expression against a JSON document.

    Matches are normalized: a single match is returned as-is, no match is
    returned as ``None`` (indistinguishable from a literal JSON null), and
    several matches are returned as a list of the matched values.

    Args:
        json_text: JSON document text
        path: JSONPath expression (e.g. "$.data.id")

    Returns:
        The normalized match

    Raises:
        InvalidJsonError: If json_text does not parse
        InvalidPathError: If path is not a valid expression or cannot be
            applied to the document
    """
    try:
        document = json.loads(json_text)
    except (ValueError, RecursionError) as e:
        raise InvalidJsonError(str(e)) from e

    try:
        expression = parse(path)
    except JSONPathError as e:
        raise InvalidPathError(path, str(e)) from e

    # Filters compare values of whatever type the document holds
    try:
        matches = [match.value for match in expression.find(document)]
    except (TypeError, ValueError, re.error) as e:
        raise InvalidPathError(path, str(e)) from e
    logger.debug("JSONPath %s matched %d node(s)", path, len(matches))

    if len(matches) == 1:
        return matches[0]
    if not matches:
        return None
    return matches


def value_to_string(value: Any) -> str:
    """Render a matched value for comparison and display."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
