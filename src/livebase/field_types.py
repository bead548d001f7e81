"""
Field types and the type-provider capability table.

FieldType is the closed set of logical field types. Behavior that depends on
the type (is it computed, does it have options, how to parse a string, how
to validate a value) lives in one FieldTypeBehavior record per type, looked
up in a table instead of switching on type strings at every call site.

FieldTypeProvider is the collaborator contract models use. Hosts may supply
their own provider; CapabilityTableProvider is the default, backed by the
table below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import logging
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from livebase.config import get_sync_config

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    SINGLE_LINE_TEXT = 'singleLineText'
    MULTILINE_TEXT = 'multilineText'
    EMAIL = 'email'
    URL = 'url'
    NUMBER = 'number'
    CHECKBOX = 'checkbox'
    SINGLE_SELECT = 'singleSelect'
    MULTIPLE_SELECTS = 'multipleSelects'
    MULTIPLE_RECORD_LINKS = 'multipleRecordLinks'
    MULTIPLE_LOOKUP_VALUES = 'multipleLookupValues'
    FORMULA = 'formula'
    ROLLUP = 'rollup'
    COUNT = 'count'
    AUTO_NUMBER = 'autoNumber'
    CREATED_TIME = 'createdTime'

    @classmethod
    def coerce(cls, raw: Optional[str]) -> Union['FieldType', str, None]:
        """Known tags become FieldType members; unknown tags pass through."""
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            return raw


@dataclass(frozen=True)
class CellValueValidation:
    is_valid: bool
    reason: Optional[str] = None

    @classmethod
    def valid(cls) -> 'CellValueValidation':
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str) -> 'CellValueValidation':
        return cls(is_valid=False, reason=reason)


Options = Optional[Mapping[str, Any]]
Parser = Callable[[str, Options], Any]
Validator = Callable[[Any, Options], CellValueValidation]


@dataclass(frozen=True)
class FieldTypeBehavior:
    """What a field type can do. One record per FieldType."""
    is_computed: bool
    has_options: bool
    parse: Parser
    validate: Validator


# ========== PARSERS AND VALIDATORS ==========

_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
_TRUE_STRINGS = frozenset({'true', 'yes', 'checked', 'x', '1'})
_FALSE_STRINGS = frozenset({'false', 'no', 'unchecked', '0', ''})


def _parse_text(raw: str, options: Options) -> Optional[str]:
    return raw if raw != '' else None


def _parse_single_line_text(raw: str, options: Options) -> Optional[str]:
    return _parse_text(raw.replace('\n', ' ').strip(), options)


def _parse_number(raw: str, options: Options) -> Optional[Union[int, float]]:
    text = raw.strip().replace(',', '')
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    precision = (options or {}).get('precision')
    if precision is None:
        return int(value) if value.is_integer() else value
    if precision == 0:
        return int(round(value))
    return round(value, precision)


def _parse_checkbox(raw: str, options: Options) -> Optional[bool]:
    text = raw.strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return None


def _choices(options: Options) -> List[Dict[str, Any]]:
    return list((options or {}).get('choices') or [])


def _find_choice(name: str, options: Options) -> Optional[Dict[str, Any]]:
    for choice in _choices(options):
        if choice.get('name') == name:
            return choice
    return None


def _parse_single_select(raw: str, options: Options) -> Optional[Dict[str, Any]]:
    name = raw.strip()
    if not name:
        return None
    return _find_choice(name, options) or {'name': name}


def _parse_multiple_selects(raw: str, options: Options) -> Optional[List[Dict[str, Any]]]:
    names = [part.strip() for part in raw.split(',') if part.strip()]
    if not names:
        return None
    return [_find_choice(name, options) or {'name': name} for name in names]


def _parse_unsupported(raw: str, options: Options) -> None:
    return None


def _validate_any(value: Any, options: Options) -> CellValueValidation:
    return CellValueValidation.valid()


def _validate_text(value: Any, options: Options) -> CellValueValidation:
    if value is None or isinstance(value, str):
        return CellValueValidation.valid()
    return CellValueValidation.invalid(f"expected a string, got {type(value).__name__}")


def _validate_single_line_text(value: Any, options: Options) -> CellValueValidation:
    if isinstance(value, str) and '\n' in value:
        return CellValueValidation.invalid("single line text cannot contain line breaks")
    return _validate_text(value, options)


def _validate_email(value: Any, options: Options) -> CellValueValidation:
    if isinstance(value, str) and not _EMAIL_RE.match(value):
        return CellValueValidation.invalid(f"{value!r} is not an email address")
    return _validate_text(value, options)


def _validate_number(value: Any, options: Options) -> CellValueValidation:
    if value is None:
        return CellValueValidation.valid()
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return CellValueValidation.invalid(f"expected a number, got {type(value).__name__}")
    if not math.isfinite(value):
        return CellValueValidation.invalid(f"{value!r} is not a finite number")
    return CellValueValidation.valid()


def _validate_checkbox(value: Any, options: Options) -> CellValueValidation:
    if value is None or isinstance(value, bool):
        return CellValueValidation.valid()
    return CellValueValidation.invalid(f"expected a boolean, got {type(value).__name__}")


def _validate_choice(choice: Any, options: Options) -> Optional[str]:
    if not isinstance(choice, Mapping) or 'name' not in choice:
        return "choice must be an object with a name"
    if _find_choice(choice['name'], options) is None:
        return f"no choice named {choice['name']!r}"
    return None


def _validate_single_select(value: Any, options: Options) -> CellValueValidation:
    if value is None:
        return CellValueValidation.valid()
    reason = _validate_choice(value, options)
    return CellValueValidation.invalid(reason) if reason else CellValueValidation.valid()


def _validate_multiple_selects(value: Any, options: Options) -> CellValueValidation:
    if value is None:
        return CellValueValidation.valid()
    if not isinstance(value, list):
        return CellValueValidation.invalid("expected a list of choices")
    for choice in value:
        reason = _validate_choice(choice, options)
        if reason:
            return CellValueValidation.invalid(reason)
    return CellValueValidation.valid()


def _validate_record_links(value: Any, options: Options) -> CellValueValidation:
    if value is None:
        return CellValueValidation.valid()
    if isinstance(value, list) and all(isinstance(v, Mapping) and 'id' in v for v in value):
        return CellValueValidation.valid()
    return CellValueValidation.invalid("expected a list of {id} objects")


def _computed(parse: Parser = _parse_unsupported, has_options: bool = True) -> FieldTypeBehavior:
    return FieldTypeBehavior(is_computed=True, has_options=has_options, parse=parse, validate=_validate_any)


FIELD_TYPE_BEHAVIORS: Dict[FieldType, FieldTypeBehavior] = {
    FieldType.SINGLE_LINE_TEXT: FieldTypeBehavior(False, False, _parse_single_line_text, _validate_single_line_text),
    FieldType.MULTILINE_TEXT: FieldTypeBehavior(False, False, _parse_text, _validate_text),
    FieldType.EMAIL: FieldTypeBehavior(False, False, _parse_single_line_text, _validate_email),
    FieldType.URL: FieldTypeBehavior(False, False, _parse_single_line_text, _validate_single_line_text),
    FieldType.NUMBER: FieldTypeBehavior(False, True, _parse_number, _validate_number),
    FieldType.CHECKBOX: FieldTypeBehavior(False, True, _parse_checkbox, _validate_checkbox),
    FieldType.SINGLE_SELECT: FieldTypeBehavior(False, True, _parse_single_select, _validate_single_select),
    FieldType.MULTIPLE_SELECTS: FieldTypeBehavior(False, True, _parse_multiple_selects, _validate_multiple_selects),
    FieldType.MULTIPLE_RECORD_LINKS: FieldTypeBehavior(False, True, _parse_unsupported, _validate_record_links),
    FieldType.MULTIPLE_LOOKUP_VALUES: _computed(),
    FieldType.FORMULA: _computed(),
    FieldType.ROLLUP: _computed(),
    FieldType.COUNT: _computed(),
    FieldType.AUTO_NUMBER: _computed(has_options=False),
    FieldType.CREATED_TIME: _computed(),
}

# Unknown (newer) types: read-only, options passed through, nothing parses.
UNKNOWN_TYPE_BEHAVIOR = FieldTypeBehavior(
    is_computed=True, has_options=True, parse=_parse_unsupported, validate=_validate_any,
)


class FieldTypeProvider(ABC):
    """Type-dependent field behavior consumed by Field models."""

    @abstractmethod
    def is_computed(self, field_type: Optional[str], options: Options) -> bool:
        ...

    @abstractmethod
    def has_configurable_options(self, field_type: Optional[str]) -> bool:
        ...

    def get_logical_type(self, raw_type: Optional[str], options: Options) -> Optional[str]:
        """Logical type override for a raw stored tag, or None for no opinion."""
        return None

    @abstractmethod
    def convert_string_to_cell_value(self, context: Any, raw: str, field_data: Mapping[str, Any]) -> Any:
        ...

    @abstractmethod
    def validate_cell_value_for_update(self, context: Any, value: Any, previous_value: Any,
                                       field_data: Mapping[str, Any]) -> CellValueValidation:
        ...


class CapabilityTableProvider(FieldTypeProvider):
    """FieldTypeProvider backed by a FieldType -> FieldTypeBehavior table.

    ``field_data`` is the field's raw node ({'type', 'typeOptions', ...});
    raw legacy tags in it are remapped through ``legacy_type_remaps``.
    """

    def __init__(self, behaviors: Optional[Dict[FieldType, FieldTypeBehavior]] = None,
                 legacy_type_remaps: Optional[Dict[str, str]] = None):
        self._behaviors = dict(FIELD_TYPE_BEHAVIORS if behaviors is None else behaviors)
        if legacy_type_remaps is None:
            legacy_type_remaps = get_sync_config().legacy_type_remaps
        self._legacy_type_remaps = dict(legacy_type_remaps)

    def behavior_for(self, field_type: Optional[str]) -> FieldTypeBehavior:
        if field_type is not None:
            field_type = self._legacy_type_remaps.get(field_type, field_type)
        coerced = FieldType.coerce(field_type)
        if isinstance(coerced, FieldType) and coerced in self._behaviors:
            return self._behaviors[coerced]
        logger.debug(f"No behavior registered for field type {field_type!r}, treating as read-only")
        return UNKNOWN_TYPE_BEHAVIOR

    def is_computed(self, field_type: Optional[str], options: Options) -> bool:
        return self.behavior_for(field_type).is_computed

    def has_configurable_options(self, field_type: Optional[str]) -> bool:
        return self.behavior_for(field_type).has_options

    def convert_string_to_cell_value(self, context: Any, raw: str, field_data: Mapping[str, Any]) -> Any:
        behavior = self.behavior_for(field_data.get('type'))
        return behavior.parse(raw, field_data.get('typeOptions'))

    def validate_cell_value_for_update(self, context: Any, value: Any, previous_value: Any,
                                       field_data: Mapping[str, Any]) -> CellValueValidation:
        behavior = self.behavior_for(field_data.get('type'))
        if behavior.is_computed:
            return CellValueValidation.invalid("computed fields cannot be written")
        return behavior.validate(value, field_data.get('typeOptions'))
