"""
Pattern-based extraction of location, duration and budget from Japanese user text.
"""

import re
from typing import Optional

from .state import RequiredConditions

# A place name ending in an administrative suffix, e.g. 札幌市 / 長野県 / 石垣島
LOCATION_PATTERN = re.compile(r"([ぁ-んァ-ヶー一-龠a-zA-Z]+(?:市|県|都|府|区|町|村|島))")
KNOWN_CITIES = ("東京", "大阪", "京都", "沖縄", "北海道", "福岡")

DURATION_PATTERN = re.compile(r"(\d+)\s*(?:日間?|泊|週間)")
BUDGET_PATTERN = re.compile(r"(\d+(?:,\d{3})*|\d+)\s*(?:円|万円?)")

MAN_MULTIPLIER = 10_000


def extract_location(text: str) -> Optional[str]:
    match = LOCATION_PATTERN.search(text)
    if match:
        return match.group(1)
    for city in KNOWN_CITIES:
        if city in text:
            return city
    return None


def extract_duration(text: str) -> Optional[str]:
    """Day count as 'N日間'; weeks are converted to days."""
    match = DURATION_PATTERN.search(text)
    if not match:
        return None
    days = int(match.group(1))
    if "週" in match.group(0):
        days *= 7
    return f"{days}日間"


def extract_budget(text: str) -> Optional[str]:
    """Amount in yen with thousands separators; '万' multiplies by 10,000."""
    match = BUDGET_PATTERN.search(text)
    if not match:
        return None
    amount = int(match.group(1).replace(",", ""))
    if "万" in match.group(0):
        amount *= MAN_MULTIPLIER
    return f"{amount:,}円"


def extract_conditions(text: str, known: RequiredConditions) -> RequiredConditions:
    """Fills in whichever conditions are still missing from ``known``."""
    conditions: RequiredConditions = {
        "location": known.get("location"),
        "duration": known.get("duration"),
        "budget": known.get("budget"),
    }
    if not conditions["location"]:
        conditions["location"] = extract_location(text)
    if not conditions["duration"]:
        conditions["duration"] = extract_duration(text)
    if not conditions["budget"]:
        conditions["budget"] = extract_budget(text)
    return conditions


def conditions_complete(conditions: RequiredConditions) -> bool:
    return bool(conditions.get("location") and conditions.get("duration") and conditions.get("budget"))
