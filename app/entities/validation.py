"""Small helpers shared by the ``validate_*`` functions of each entity module."""

from typing import Any, Iterable, List, Mapping, Optional

from app.core.errors import FieldError


def require(document: Mapping[str, Any], fields: Iterable[str]) -> List[FieldError]:
    errors = []
    for name in fields:
        value = document.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(FieldError(field=name, message=f"Path `{name}` is required.", value=value))
    return errors


def check_choice(document: Mapping[str, Any], name: str, choices: Iterable[Any]) -> Optional[FieldError]:
    value = document.get(name)
    allowed = list(choices)
    if value is not None and value not in allowed:
        return FieldError(field=name, message=f"`{value}` is not a valid value for path `{name}`.", value=value)
    return None


def check_min(document: Mapping[str, Any], name: str, minimum: float) -> Optional[FieldError]:
    value = document.get(name)
    if value is not None and value < minimum:
        return FieldError(
            field=name,
            message=f"Path `{name}` ({value}) is less than minimum allowed value ({minimum}).",
            value=value,
        )
    return None


def collect(*results) -> List[FieldError]:
    """Flatten a mix of ``FieldError``, ``None`` and lists of ``FieldError``."""
    errors: List[FieldError] = []
    for result in results:
        if result is None:
            continue
        if isinstance(result, FieldError):
            errors.append(result)
        else:
            errors.extend(result)
    return errors
