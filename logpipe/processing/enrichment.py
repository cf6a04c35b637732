"""
Metadata enrichment and feature extraction.

Derives context from a record's address and timestamp, normalizes the
message into tokens, and computes the fixed-shape feature record used by
downstream analysis.
"""

import ipaddress
import re
from datetime import datetime
from typing import Any, List, Optional

from logpipe.models import EnrichedMetadata, LogFeatures

LOCALHOST_LITERALS = {'127.0.0.1', '::1', 'localhost'}

PRIVATE_NETWORKS = (
    ipaddress.ip_network('10.0.0.0/8'),
    ipaddress.ip_network('172.16.0.0/12'),
    ipaddress.ip_network('192.168.0.0/16'),
)

DAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

ERROR_PATTERN = re.compile(r'error|exception|fail', re.IGNORECASE)
WARNING_PATTERN = re.compile(r'warn|warning|caution', re.IGNORECASE)
IP_PATTERN = re.compile(r'\b(?:\d{1,3}\.){3}\d{1,3}\b')
URL_PATTERN = re.compile(r'https?://\S+')
EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
SPECIAL_CHAR_PATTERN = re.compile(r'[^a-zA-Z0-9\s]')


def classify_ip(ip: str) -> str:
    """
    Classify an address as 'localhost', 'private' (RFC 1918) or 'public'.

    Values that are not IP addresses count as public.
    """
    ip = str(ip or '').strip()
    if ip in LOCALHOST_LITERALS:
        return 'localhost'
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return 'public'
    if address.version == 4 and any(address in network for network in PRIVATE_NETWORKS):
        return 'private'
    return 'public'


def time_of_day(timestamp: datetime) -> str:
    hour = timestamp.hour
    if 6 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'evening'
    return 'night'


def day_of_week(timestamp: datetime) -> str:
    return DAY_NAMES[timestamp.weekday()]


def is_business_hours(timestamp: datetime) -> bool:
    """Monday to Friday, from 09:00 up to but excluding 17:00."""
    return timestamp.weekday() < 5 and 9 <= timestamp.hour < 17


def enrich(ip_address: str, timestamp: Any) -> EnrichedMetadata:
    """
    Build the enrichment for a record.

    Time-derived fields stay None when the timestamp is not a datetime.
    """
    metadata = EnrichedMetadata(ip_type=classify_ip(ip_address))
    if isinstance(timestamp, datetime):
        metadata.time_of_day = time_of_day(timestamp)
        metadata.day_of_week = day_of_week(timestamp)
        metadata.is_business_hours = is_business_hours(timestamp)
    return metadata


def normalize_message(message: str) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    message = re.sub(r'[^\w\s]', ' ', message.lower())
    return re.sub(r'\s+', ' ', message).strip()


def tokenize(message: str) -> List[str]:
    return [token for token in message.split() if token]


def extract_features(message: Optional[str]) -> LogFeatures:
    """Compute the feature record of a message."""
    message = message or ''
    return LogFeatures(
        message_length=len(message),
        has_error=bool(ERROR_PATTERN.search(message)),
        has_warning=bool(WARNING_PATTERN.search(message)),
        contains_ip=bool(IP_PATTERN.search(message)),
        contains_url=bool(URL_PATTERN.search(message)),
        contains_email=bool(EMAIL_PATTERN.search(message)),
        word_count=len(message.split()),
        special_char_count=len(SPECIAL_CHAR_PATTERN.findall(message)),
    )
