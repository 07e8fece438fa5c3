# geolayers/services/spatial/borough.py
import re
from enum import Enum
from typing import Any, Optional, Tuple

class Borough(str, Enum):
    MANHATTAN = "Manhattan"
    BRONX = "Bronx"
    BROOKLYN = "Brooklyn"
    QUEENS = "Queens"
    STATEN_ISLAND = "Staten Island"

# Every spelling seen across the layers, upper-cased.
# Brooklyn is "B" in parks and "K" in school zones.
_BOROUGH_CODES = {
    Borough.MANHATTAN: ("1", "M", "MANHATTAN", "NEW YORK"),
    Borough.BRONX: ("2", "X", "BRONX", "THE BRONX"),
    Borough.BROOKLYN: ("3", "B", "K", "BROOKLYN", "KINGS"),
    Borough.QUEENS: ("4", "Q", "QUEENS"),
    Borough.STATEN_ISLAND: ("5", "R", "STATEN ISLAND", "STATENISLAND", "STATEN_ISLAND", "RICHMOND"),
}

_LOOKUP = {code: borough for borough, codes in _BOROUGH_CODES.items() for code in codes}

_NAME_PATTERN = re.compile(r"\b(manhattan|bronx|brooklyn|queens|staten island)\b", re.IGNORECASE)

def normalize(raw: Any) -> Optional[Borough]:
    """
    Maps a numeric code ("1".."5"), letter code or borough name to a Borough.
    Returns None when the value is unknown, which means "do not prefilter".
    """
    if raw is None:
        return None
    return _LOOKUP.get(str(raw).strip().upper())

def aliases(borough: Borough) -> Tuple[str, ...]:
    """All raw spellings (upper-cased) that normalize to `borough`."""
    return _BOROUGH_CODES[borough]

def display_name(raw: Any) -> Optional[str]:
    borough = normalize(raw)
    return borough.value if borough else None

def borough_from_description(description: str) -> Optional[Borough]:
    """
    Borough named in a filter description such as
    "Clinton Hill neighborhood in Brooklyn". The last mention wins, since
    descriptions end with "in <Borough>" and the feature name may itself
    contain a borough ("Bronx Park park in Bronx").
    """
    matches = _NAME_PATTERN.findall(description or "")
    if not matches:
        return None
    return normalize(matches[-1])
