"""Final quality gate for processed records."""

from datetime import datetime
from typing import List

from logpipe.models import LogLevel, RawLog, level_name

MIN_MESSAGE_LENGTH = 3
MAX_MESSAGE_LENGTH = 10000

VALID_LEVELS = frozenset(level.value for level in LogLevel)


def validation_errors(log: RawLog) -> List[str]:
    """
    Check a normalized record.

    Returns:
        Reasons the record is invalid; empty when it is valid
    """
    errors = []
    message = log.message if isinstance(log.message, str) else ''

    if not message.strip():
        errors.append("empty message")
    elif not MIN_MESSAGE_LENGTH <= len(message) <= MAX_MESSAGE_LENGTH:
        errors.append(
            f"message length {len(message)} outside "
            f"[{MIN_MESSAGE_LENGTH}, {MAX_MESSAGE_LENGTH}]"
        )

    if not str(log.source or '').strip():
        errors.append("empty source")

    if not isinstance(log.timestamp, datetime):
        errors.append(f"invalid timestamp: {log.timestamp!r}")

    if level_name(log.log_level) not in VALID_LEVELS:
        errors.append(f"invalid log level: {log.log_level!r}")

    return errors
