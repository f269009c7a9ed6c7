"""reqcraft variables - typed casting and {{placeholder}} substitution."""

import json
import logging
import math
import re
from collections.abc import Iterable
from typing import Any

from reqcraft.models import Variable, VariableType

logger = logging.getLogger(__name__)

# Input that is exactly one placeholder keeps the variable's type.
_WHOLE_VALUE_RE = re.compile(r"^\{\{\s*([A-Za-z0-9_]+)\s*\}\}$")
_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_PREFIXED_INT_RE = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX = {"x": 16, "o": 8, "b": 2}
_EXPONENT_THRESHOLD = 10**21


def parse_number(text: str) -> int | float | None:
    """Parse a JavaScript-style numeric literal.

    Returns an int for integral values, a float otherwise, and None when
    the text is not a finite number. Surrounding whitespace is ignored and
    blank text is 0, as with ``Number("")``.
    """
    stripped = text.strip()
    if not stripped:
        return 0

    m = _PREFIXED_INT_RE.match(stripped)
    if m:
        try:
            return int(m.group(2), _RADIX[m.group(1).lower()])
        except ValueError:
            return None

    if not _DECIMAL_RE.match(stripped):
        return None
    number = float(stripped)
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json(text: str) -> Any:
    """Strict JSON: NaN and Infinity literals are rejected like any other bad token."""
    return json.loads(text, parse_constant=_reject_constant)


def format_number(number: int | float) -> str:
    """Format a number the way JavaScript's String(number) does.

    Integers below 1e21 print in full; everything else uses the shortest
    round-tripping digits, switching to exponent form (``1e-7``,
    ``1.5e+22``) outside the 1e-6 .. 1e21 range.
    """
    if isinstance(number, int):
        if abs(number) < _EXPONENT_THRESHOLD:
            return str(number)
        number = float(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number == 0:
        return "0"

    sign = "-" if number < 0 else ""
    mantissa, _, exponent = repr(abs(number)).partition("e")
    whole, _, fraction = mantissa.partition(".")
    all_digits = whole + fraction
    digits = all_digits.lstrip("0").rstrip("0")
    # number == 0.<digits> * 10**point
    point = len(whole) + int(exponent or 0) - (len(all_digits) - len(all_digits.lstrip("0")))
    count = len(digits)

    if count <= point <= 21:
        return sign + digits + "0" * (point - count)
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits
    power = point - 1
    mark = "+" if power >= 0 else "-"
    head = digits[0] if count == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{head}e{mark}{abs(power)}"


def cast_variable(variable: Variable) -> Any:
    """Interpret a variable's raw text according to its declared type.

    Never raises: a value that does not fit its type comes back as the raw
    text.
    """
    value = variable.value
    var_type = variable.type

    if var_type == VariableType.STRING:
        return value

    if var_type == VariableType.NUMBER:
        number = parse_number(value)
        return value if number is None else number

    if var_type == VariableType.BOOLEAN:
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return bool(value)

    if var_type == VariableType.JSON:
        try:
            return parse_json(value)
        except (ValueError, RecursionError):
            logger.debug("Variable %r is not valid JSON, using raw text", variable.key)
            return value

    # AUTO
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if value.strip():
        number = parse_number(value)
        if number is not None:
            return number
    trimmed = value.strip()
    if (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    ):
        try:
            return parse_json(trimmed)
        except (ValueError, RecursionError):
            logger.debug("Variable %r looks like JSON but does not parse", variable.key)
    return value


def stringify(value: Any) -> str:
    """Render a cast value as text, the way inline interpolation inserts it."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None or isinstance(value, dict | list):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, int | float):
        return format_number(value)
    return str(value)


def enabled_variables(environment: Iterable[Variable]) -> list[Variable]:
    return [v for v in environment if v.enabled and v.key]


def find_variable(environment: Iterable[Variable], key: str) -> Variable | None:
    """Return the first enabled variable called ``key``."""
    for variable in environment:
        if variable.enabled and variable.key and variable.key == key:
            return variable
    return None


def substitute_variables(text: Any, environment: Iterable[Variable]) -> Any:
    """Resolve {{name}} placeholders in text.

    - Text that is exactly one placeholder (ignoring surrounding
      whitespace) for a known variable returns the variable's cast value,
      so "{{count}}" can yield an int and "{{payload}}" a dict.
    - Otherwise every known placeholder is replaced inline by the string
      form of its cast value. Unknown placeholders are left as they are.
    - Non-string input is returned unchanged.
    """
    if not isinstance(text, str):
        return text

    variables = enabled_variables(environment)

    m = _WHOLE_VALUE_RE.match(text.strip())
    if m:
        variable = find_variable(variables, m.group(1))
        if variable is not None:
            return cast_variable(variable)

    def _replace(m: re.Match) -> str:
        variable = find_variable(variables, m.group(1))
        if variable is None:
            return m.group(0)
        return stringify(cast_variable(variable))

    return _PLACEHOLDER_RE.sub(_replace, text)


def substitute_text(text: Any, environment: Iterable[Variable]) -> str:
    """Substitute and always hand back text."""
    return stringify(substitute_variables(text, environment))


def environment_from_mapping(mapping: dict[str, Any]) -> list[Variable]:
    """Turn a plain mapping (CLI -v pairs, .env values) into AUTO variables."""
    return [
        Variable(key=str(k), value="" if v is None else stringify(v))
        for k, v in mapping.items()
    ]
