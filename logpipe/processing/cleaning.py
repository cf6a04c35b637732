"""
Record cleaning.

Removes terminal escape sequences and control characters from messages and
redacts sensitive metadata values. Cleaning a clean record changes nothing.
"""

import re
from typing import Any, Dict

from logpipe.models import RawLog

REDACTION_MARKER = "[REDACTED]"

SENSITIVE_KEYS = ('password', 'token', 'apiKey', 'secret', 'creditCard', 'ssn', 'apiSecret')
_SENSITIVE_LOWER = tuple(key.lower() for key in SENSITIVE_KEYS)

# CSI sequences (colors, cursor movement) and two-byte escapes
ANSI_ESCAPE = re.compile(r'\x1B(?:\[[0-?]*[ -/]*[@-~]|[@-Z\\-_])')

# Everything below 0x20 except tab, newline and carriage return, plus DEL
CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')


def clean_message(message: str) -> str:
    """
    Strip escape sequences, null bytes and control characters, and
    normalize line endings to ``\\n``. Tabs and newlines are kept.
    """
    message = ANSI_ESCAPE.sub('', message)
    message = CONTROL_CHARS.sub('', message)
    return message.replace('\r\n', '\n').replace('\r', '\n')


def is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(term in lowered for term in _SENSITIVE_LOWER)


def redact_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``metadata`` with sensitive values replaced.

    A key is sensitive when it contains one of SENSITIVE_KEYS, ignoring
    case. Nested mappings are redacted the same way.
    """
    redacted = {}
    for key, value in metadata.items():
        if is_sensitive_key(key):
            redacted[key] = REDACTION_MARKER
        elif isinstance(value, dict):
            redacted[key] = redact_metadata(value)
        else:
            redacted[key] = value
    return redacted


def clean_log(log: RawLog) -> RawLog:
    """Return a cleaned copy of a record. Message and source are coerced to str."""
    cleaned = log.copy()
    cleaned.message = clean_message(str(cleaned.message or ''))
    cleaned.source = str(cleaned.source or '')
    cleaned.metadata = redact_metadata(cleaned.metadata or {})
    return cleaned
