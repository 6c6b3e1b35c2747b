"""
Incident Category Module
Maps Chicago Data Portal crime types onto the app's five map categories
"""
from enum import Enum
from typing import Optional


class IncidentCategory(str, Enum):
    """Closed set of categories shown on the map and used for scoring"""

    THEFT = "THEFT"
    BATTERY = "BATTERY"
    ASSAULT = "ASSAULT"
    ROBBERY = "ROBBERY"
    HATE_CRIME = "HATE_CRIME"

    @classmethod
    def from_name(cls, name: str) -> Optional["IncidentCategory"]:
        """Look up a category by name, case-insensitive. None if unknown."""
        try:
            return cls(name.strip().upper())
        except ValueError:
            return None


# Primary types that always count as gender/sex-related offenses
SENSITIVE_OFFENSE_TYPES = frozenset({
    "OFFENSE INVOLVING CHILDREN",
    "SEX OFFENSE",
    "STALKING",
    "CRIM SEXUAL ASSAULT",
})

# Description tokens that flag a record as gender/sex-related
SENSITIVE_DESCRIPTION_TOKENS = ("GENDER", "SEX", "FEMALE", "WOMAN")

_DIRECT_TYPES = {
    "THEFT": IncidentCategory.THEFT,
    "BATTERY": IncidentCategory.BATTERY,
    "ASSAULT": IncidentCategory.ASSAULT,
    "ROBBERY": IncidentCategory.ROBBERY,
}

# Marker colours used by the map front-end
CATEGORY_COLORS = {
    IncidentCategory.THEFT: "#ff4444",
    IncidentCategory.BATTERY: "#ff8844",
    IncidentCategory.ASSAULT: "#ffcc00",
    IncidentCategory.ROBBERY: "#cc0000",
    IncidentCategory.HATE_CRIME: "#9900ff",
}


def classify(raw_type: Optional[str], raw_description: Optional[str]) -> IncidentCategory:
    """
    Classify a raw crime record into one IncidentCategory.

    Rules are checked in order and the first match wins. The sensitive-offense
    check runs first so that e.g. "SEX OFFENSE" or a description mentioning a
    woman never falls through to a generic substring bucket.

    Args:
        raw_type: Chicago `primary_type` field (free text, may be None)
        raw_description: Chicago `description` field (free text, may be None)

    Returns:
        IncidentCategory, THEFT when nothing else matches
    """
    crime_type = (raw_type or "").upper()
    desc = (raw_description or "").upper()

    if crime_type in SENSITIVE_OFFENSE_TYPES or any(
        token in desc for token in SENSITIVE_DESCRIPTION_TOKENS
    ):
        return IncidentCategory.HATE_CRIME

    if crime_type in _DIRECT_TYPES:
        return _DIRECT_TYPES[crime_type]

    if "THEFT" in crime_type or crime_type in ("BURGLARY", "MOTOR VEHICLE THEFT"):
        return IncidentCategory.THEFT
    if "BATTERY" in crime_type:
        return IncidentCategory.BATTERY
    if "ASSAULT" in crime_type:
        return IncidentCategory.ASSAULT
    if "ROBBERY" in crime_type:
        return IncidentCategory.ROBBERY

    return IncidentCategory.THEFT


def heat_intensity(category: IncidentCategory) -> float:
    """Heatmap intensity for one incident: hate crimes burn hottest"""
    return 1.0 if category == IncidentCategory.HATE_CRIME else 0.6
