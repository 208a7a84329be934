"""
Variable substitution for request URLs, headers, params and bodies.
"""

import re
from typing import Mapping


def _placeholder_pattern(keys) -> "re.Pattern[str]":
    names = "|".join(re.escape(key) for key in keys)
    # Double braces first so "{{key}}" is never consumed as "{" + "{key}" + "}".
    double_brace = r"\{\{(?P<double>" + names + r")\}\}"
    single_brace = r"\{(?P<single>" + names + r")\}"
    return re.compile(double_brace + "|" + single_brace)


def substitute(text: str, variables: Mapping[str, str]) -> str:
    """
    Replace ``{{name}}`` and ``{name}`` placeholders with variable values.

    The text is scanned once, so substituted values are never re-scanned:
    a value that itself contains ``{{other}}`` is inserted literally.

    Args:
        text: Text containing placeholders
        variables: Mapping of variable name to value

    Returns:
        Text with every known placeholder replaced
    """
    if not text or not variables:
        return text

    pattern = _placeholder_pattern(variables.keys())

    def _replace(match: "re.Match[str]") -> str:
        key = match.group("double")
        if key is None:
            key = match.group("single")
        return variables[key]

    return pattern.sub(_replace, text)
