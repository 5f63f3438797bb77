"""
Request parsing helpers shared by the API blueprints and services.

Payloads use camelCase keys. Parsers return None for null/empty input and
raise ValidationError for values that cannot be interpreted.
"""

from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Type
from enum import Enum

from flask import request, jsonify

from utils.errors import ValidationError
from timezone_utils import to_local_naive


def error_response(message: str, status_code: int):
    return jsonify({'error': message}), status_code


def get_json_body() -> Dict[str, Any]:
    """Return the request JSON object or raise ValidationError"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Invalid JSON body')
    return data


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_enum(enum_cls: Type[Enum], value: Any, field: str) -> Optional[Enum]:
    """Look an enum member up by name, case-insensitively"""
    if is_blank(value):
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value).strip().upper()]
    except KeyError:
        raise ValidationError(f"Invalid {field}: {value}")


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into naive local time"""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


def parse_date(value: Any, field: str) -> Optional[date]:
    parsed = parse_datetime(value, field)
    return parsed.date() if parsed else None


def parse_decimal(value: Any, field: str) -> Optional[Decimal]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value}")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid {field}: {value}")
    if not parsed.is_finite():
        raise ValidationError(f"Invalid {field}: {value}")
    return parsed


def parse_float(value: Any, field: str) -> Optional[float]:
    parsed = parse_decimal(value, field)
    return float(parsed) if parsed is not None else None


def parse_int(value: Any, field: str) -> Optional[int]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


def parse_bool(value: Any, field: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('true', '1', 'yes'):
        return True
    if text in ('false', '0', 'no'):
        return False
    raise ValidationError(f"Invalid {field}: {value}")


def parse_text(value: Any, field: str = '') -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()


def merge_required(data: Dict[str, Any], key: str, current: Any,
                   parser: Callable[[Any, str], Any] = parse_text) -> Any:
    """Keep the current value unless the payload carries a non-empty replacement"""
    if is_blank(data.get(key)):
        return current
    return parser(data[key], key)


def merge_optional(data: Dict[str, Any], key: str, current: Any,
                   parser: Callable[[Any, str], Any] = parse_text) -> Any:
    """Keep the current value only when the key is absent; null or "" clears it"""
    if key not in data:
        return current
    return parser(data[key], key)


def query_arg(name: str, parser: Callable[[Any, str], Any] = parse_text) -> Any:
    return parser(request.args.get(name), name)


def enum_parser(enum_cls: Type[Enum]) -> Callable[[Any, str], Optional[Enum]]:
    """Adapt parse_enum to the (value, field) parser signature used by the merge helpers"""
    return lambda value, field: parse_enum(enum_cls, value, field)
