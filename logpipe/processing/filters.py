"""
Record filters.

A filter is a veto: an active include-filter rejects records its condition
does not match, an active exclude-filter rejects records it does match.
Filters are independent, so their order never changes the outcome.
"""

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Tuple, Union

from logpipe.models import RawLog, level_name


class FilterType(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


# Condition field names and the record attribute they test
CONDITION_FIELDS = {
    'source': 'source',
    'logLevel': 'log_level',
    'log_level': 'log_level',
    'level': 'log_level',
}

_CONDITION = re.compile(
    r"""^\s*(?P<field>\w+)\s*={2,3}\s*(?P<quote>['"])(?P<value>[^'"]*)(?P=quote)\s*$"""
)


def parse_condition(condition: str) -> Tuple[str, str]:
    """
    Parse ``<field> == '<value>'`` (``===`` also accepted).

    Returns:
        (record attribute, expected value)

    Raises:
        ValueError: If the condition is malformed or names an unknown field
    """
    match = _CONDITION.match(condition or '')
    if not match:
        raise ValueError(
            f"Invalid filter condition: {condition!r}. "
            f"Expected format: source == 'nginx' or logLevel == 'DEBUG'"
        )
    name = match.group('field')
    if name not in CONDITION_FIELDS:
        raise ValueError(
            f"Unknown filter field: {name}. Supported: {sorted(CONDITION_FIELDS)}"
        )
    return CONDITION_FIELDS[name], match.group('value')


@dataclass
class Filter:
    """
    Declarative record filter.

    Example:
        Filter(name="Only nginx", type="include", condition="source == 'nginx'")
    """

    name: str
    type: Union[str, FilterType]
    condition: str
    is_active: bool = True
    filter_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if isinstance(self.type, str):
            try:
                self.type = FilterType(self.type.lower())
            except ValueError:
                raise ValueError(
                    f"Unknown filter type: {self.type}. "
                    f"Supported: {[t.value for t in FilterType]}"
                )
        self._attribute, self._expected = parse_condition(self.condition)

    def matches(self, log: RawLog) -> bool:
        """Evaluate the condition against a record."""
        actual = getattr(log, self._attribute, None)
        if self._attribute == 'log_level':
            actual = level_name(actual)
        return actual == self._expected

    def allows(self, log: RawLog) -> bool:
        """False when this filter vetoes the record. Inactive filters allow everything."""
        if not self.is_active:
            return True
        if self.type == FilterType.INCLUDE:
            return self.matches(log)
        return not self.matches(log)


def apply_filters(filters: Iterable[Filter], log: RawLog) -> bool:
    """True when no filter vetoes the record."""
    return all(f.allows(log) for f in filters)
