"""
Parameter value validation.

Turns operator input (always text on the command line) into the typed value
stored in the document, enforcing the parameter's type, bounds and enum.
"""

from __future__ import annotations

from typing import Any

from ...core.exceptions import ParameterValidationError
from ...core.models.service import ServiceParameter

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def split_list_value(value: Any) -> list[str]:
    """Normalize a string[] value given as a list or a comma-joined string."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value]
    else:
        items = [part.strip() for part in str(value).split(",")]
    return [item for item in items if item]


def validate_parameter_value(parameter: ServiceParameter, raw: Any) -> Any:
    """
    Coerce and validate a value for a parameter.

    Args:
        parameter: The parameter definition
        raw: Text from the operator, or an already-typed value

    Returns:
        The typed value to store

    Raises:
        ParameterValidationError: If the value does not fit the parameter
    """
    kind = parameter.type

    if kind == "bool":
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ParameterValidationError(
            f"Expected a boolean for '{parameter.name}'", parameter=parameter.name, value=str(raw)
        )

    if kind == "int":
        if isinstance(raw, bool):
            raise ParameterValidationError(
                f"Expected an integer for '{parameter.name}'", parameter=parameter.name, value=str(raw)
            )
        try:
            number = int(str(raw).strip())
        except ValueError as e:
            raise ParameterValidationError(
                f"Expected an integer for '{parameter.name}'",
                parameter=parameter.name,
                value=str(raw),
                cause=e,
            ) from e
        bounds = parameter.validation
        if bounds is not None:
            if bounds.min is not None and number < bounds.min:
                raise ParameterValidationError(
                    f"'{parameter.name}' must be >= {bounds.min}",
                    parameter=parameter.name,
                    value=str(number),
                )
            if bounds.max is not None and number > bounds.max:
                raise ParameterValidationError(
                    f"'{parameter.name}' must be <= {bounds.max}",
                    parameter=parameter.name,
                    value=str(number),
                )
        return number

    if kind == "string[]":
        items = split_list_value(raw)
        _check_enum(parameter, items)
        return items

    text = str(raw)
    _check_enum(parameter, [text])
    return text


def _check_enum(parameter: ServiceParameter, values: list[str]) -> None:
    if not parameter.enum:
        return
    for value in values:
        if value not in parameter.enum:
            raise ParameterValidationError(
                f"'{parameter.name}' must be one of: {', '.join(parameter.enum)}",
                parameter=parameter.name,
                value=value,
            )
