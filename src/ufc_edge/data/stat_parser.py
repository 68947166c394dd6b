"""
Parsing of raw fighter statistic fields.

Raw records come either from the storage layer (``SLPM``, ``StrDef``,
``TDAvg`` ...) or from ufcstats CSV exports (``SLpM``, ``Str. Def``,
``TD Avg.`` ...). Every parser here is total: malformed input is logged at
DEBUG and replaced with a safe default, where 0 means "unknown".
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from .models import FighterProfile, Stance

logger = logging.getLogger(__name__)

HEIGHT_PATTERN = re.compile(r"(\d+)\s*'\s*(\d+)\s*\"?")
LEADING_INT_PATTERN = re.compile(r'^\s*(\d+)')

MISSING_MARKERS = {'', '--', 'null', 'none', 'nan', 'n/a'}

# Profile attribute -> accepted raw field names, storage names first
FIELD_ALIASES = {
    'name': ('Name', 'name', 'fighter_name'),
    'height': ('Height', 'height'),
    'weight': ('Weight', 'weight'),
    'reach': ('Reach', 'reach'),
    'stance': ('Stance', 'STANCE', 'stance'),
    'dob': ('DOB', 'dob'),
    'slpm': ('SLPM', 'SLpM', 'slpm'),
    'sapm': ('SApM', 'SAPM', 'sapm'),
    'str_acc': ('StrAcc', 'Str. Acc.', 'str_acc'),
    'str_def': ('StrDef', 'Str. Def', 'Str. Def.', 'str_def'),
    'td_avg': ('TDAvg', 'TD Avg.', 'td_avg'),
    'td_acc': ('TDAcc', 'TD Acc.', 'td_acc'),
    'td_def': ('TDDef', 'TD Def.', 'td_def'),
    'sub_avg': ('SubAvg', 'Sub. Avg.', 'sub_avg'),
    'last_updated': ('last_updated', 'updated_at', 'LastUpdated'),
}

RATE_FIELDS = ('slpm', 'sapm', 'td_avg', 'sub_avg')
PERCENT_FIELDS = ('str_acc', 'str_def', 'td_acc', 'td_def')


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in MISSING_MARKERS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _to_float(value: Any, field_name: str) -> float:
    number = pd.to_numeric(value, errors='coerce')
    if pd.isna(number):
        logger.debug(f"Could not parse {field_name} value {value!r}")
        return 0.0
    return float(number)


def parse_height(value: Any) -> int:
    """Convert a height like 6' 4" (or 6'4") to inches; 0 when unknown."""
    if is_missing(value):
        return 0
    match = HEIGHT_PATTERN.search(str(value))
    if not match:
        logger.debug(f"Could not parse height {value!r}")
        return 0
    feet, inches = match.groups()
    return int(feet) * 12 + int(inches)


def parse_reach(value: Any) -> int:
    """Convert a reach like 74" or 84.5" to whole inches; 0 when unknown."""
    if is_missing(value):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = LEADING_INT_PATTERN.match(str(value).rstrip().rstrip('"'))
    if not match:
        logger.debug(f"Could not parse reach {value!r}")
        return 0
    return int(match.group(1))


def parse_percent(value: Any) -> float:
    """Convert '58%' to 58.0; 0 when missing or malformed."""
    if is_missing(value):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return _to_float(str(value).strip().rstrip('%'), 'percentage')


def parse_rate(value: Any) -> float:
    """Per-minute or per-15-minute rate such as '4.29'."""
    if is_missing(value):
        return 0.0
    return _to_float(value, 'rate')


def parse_weight(value: Any) -> float:
    """Convert '185 lbs.' to 185.0."""
    if is_missing(value):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return _to_float(str(value).replace('lbs.', '').replace('lbs', '').strip(), 'weight')


def parse_stance(value: Any) -> Stance:
    if is_missing(value):
        return Stance.UNKNOWN
    normalized = str(value).strip().lower()
    for stance in Stance:
        if stance.value.lower() == normalized:
            return stance
    logger.debug(f"Unrecognized stance {value!r}")
    return Stance.UNKNOWN


def parse_date(value: Any) -> Optional[date]:
    """Parse 'Jul 19, 1987' or an ISO date; None when missing or malformed."""
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed = pd.to_datetime(str(value).strip(), format='%b %d, %Y', errors='coerce')
    if pd.isna(parsed):
        parsed = pd.to_datetime(str(value).strip(), errors='coerce')
    if pd.isna(parsed):
        logger.debug(f"Could not parse date {value!r}")
        return None
    return parsed.date()


parse_dob = parse_date


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp into a naive datetime (UTC if the input carried a zone)."""
    if is_missing(value):
        return None

    parsed = pd.to_datetime(value, errors='coerce', utc=True)
    if pd.isna(parsed):
        logger.debug(f"Could not parse timestamp {value!r}")
        return None
    return parsed.tz_convert(None).to_pydatetime()


def _lookup(raw: Mapping[str, Any], attribute: str) -> Any:
    for key in FIELD_ALIASES[attribute]:
        if key in raw:
            return raw[key]
    return None


def build_fighter_profile(raw: Mapping[str, Any]) -> Optional[FighterProfile]:
    """
    Build a FighterProfile from a raw storage row or ufcstats CSV row.

    Returns None when the row carries no fighter name.
    """
    name = _lookup(raw, 'name')
    if is_missing(name):
        logger.debug("Raw fighter record without a name")
        return None

    values: Dict[str, Any] = {
        'name': str(name).strip(),
        'height': parse_height(_lookup(raw, 'height')),
        'reach': parse_reach(_lookup(raw, 'reach')),
        'weight': parse_weight(_lookup(raw, 'weight')),
        'stance': parse_stance(_lookup(raw, 'stance')),
        'dob': parse_dob(_lookup(raw, 'dob')),
        'last_updated': parse_timestamp(_lookup(raw, 'last_updated')),
    }
    for attribute in RATE_FIELDS:
        values[attribute] = parse_rate(_lookup(raw, attribute))
    for attribute in PERCENT_FIELDS:
        values[attribute] = parse_percent(_lookup(raw, attribute))

    return FighterProfile(**values)
