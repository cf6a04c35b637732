"""
Record transformations.

A transformation is a pure ``RawLog -> RawLog`` edit. Active
transformations are applied in registration order, each one receiving a
copy of the previous result.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, List

from logpipe.models import RawLog


@dataclass
class Transformation:
    """A named record edit."""

    name: str
    operation: Callable[[RawLog], RawLog]
    description: str = ""
    is_active: bool = True
    transformation_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not callable(self.operation):
            raise ValueError("operation must be callable")

    def apply(self, log: RawLog) -> RawLog:
        result = self.operation(log.copy())
        if not isinstance(result, RawLog):
            raise TypeError(
                f"Transformation {self.name!r} returned {type(result).__name__}, expected RawLog"
            )
        return result


def trim_whitespace(log: RawLog) -> RawLog:
    return replace(log, message=log.message.strip())


def lowercase_source(log: RawLog) -> RawLog:
    return replace(log, source=log.source.lower())


def collapse_whitespace(log: RawLog) -> RawLog:
    return replace(log, message=re.sub(r'\s+', ' ', log.message))


def default_transformations() -> List[Transformation]:
    """The transformations a preprocessor registers at construction."""
    return [
        Transformation(
            name="Trim Whitespace",
            description="Removes leading and trailing whitespace from log messages",
            operation=trim_whitespace,
        ),
        Transformation(
            name="Normalize Source",
            description="Converts source name to lowercase",
            operation=lowercase_source,
        ),
        Transformation(
            name="Remove Duplicate Spaces",
            description="Replaces runs of whitespace with a single space",
            operation=collapse_whitespace,
        ),
    ]
