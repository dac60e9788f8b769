"""Parameter checks for tool calls.

Only required names are checked. Types and defaults are left to the
handler, so optional parameters pass through untouched. The one
exception is the shell timeout, which the router parses before any
approval is recorded.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from loongclaw.exceptions import ParameterValidationError


def validate_arguments(input_schema: Mapping[str, Any], args: Any) -> dict[str, Any]:
    """Check that every required parameter is present in args.

    Returns the arguments unchanged.

    Raises:
        ParameterValidationError: args is not a mapping, or a required
            parameter is absent.
    """
    if not isinstance(args, Mapping):
        raise ParameterValidationError(
            f"malformed arguments: expected an object, got {type(args).__name__}"
        )

    for name in input_schema.get("required", []) or []:
        if name not in args:
            raise ParameterValidationError(f"missing parameter: {name}", parameter=name)

    return dict(args)


def parse_timeout_ms(value: Any, default: int) -> int:
    """Validate an optional timeout in milliseconds.

    None means default. Fractions round up, so a positive value never
    becomes a zero timeout.

    Raises:
        ParameterValidationError: not a finite positive number.
    """
    if value is None:
        return default
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise ParameterValidationError(
            "malformed parameter: timeout must be a positive number of milliseconds",
            parameter="timeout",
        )
    return math.ceil(value)
