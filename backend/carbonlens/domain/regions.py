"""
Static geography -> macro-region mapping.
"""

from typing import Dict, FrozenSet, Optional

UNKNOWN_REGION = "Unknown"
OTHER_REGION = "Other"

REGION_GEOGRAPHIES: Dict[str, FrozenSet[str]] = {
    "North America": frozenset({
        "US", "USA", "UNITED STATES", "CA", "CANADA", "MX", "MEXICO",
    }),
    "Europe": frozenset({
        "UK", "GB", "UNITED KINGDOM", "DE", "GERMANY", "FR", "FRANCE", "IT", "ITALY",
        "ES", "SPAIN", "NL", "NETHERLANDS", "BE", "BELGIUM", "CH", "SWITZERLAND",
        "SE", "SWEDEN", "NO", "NORWAY", "DK", "DENMARK", "FI", "FINLAND",
        "AT", "AUSTRIA", "PL", "POLAND", "IE", "IRELAND", "PT", "PORTUGAL",
    }),
    "Asia-Pacific": frozenset({
        "JP", "JAPAN", "CN", "CHINA", "KR", "KOREA", "SOUTH KOREA", "AU", "AUSTRALIA",
        "IN", "INDIA", "SG", "SINGAPORE", "HK", "HONG KONG", "TW", "TAIWAN",
        "TH", "THAILAND", "MY", "MALAYSIA", "ID", "INDONESIA", "NZ", "NEW ZEALAND",
    }),
    "Latin America": frozenset({
        "BR", "BRAZIL", "AR", "ARGENTINA", "CL", "CHILE", "CO", "COLOMBIA", "PE", "PERU",
    }),
    "Middle East & Africa": frozenset({
        "SA", "SAUDI ARABIA", "AE", "UAE", "IL", "ISRAEL", "ZA", "SOUTH AFRICA",
        "EG", "EGYPT", "NG", "NIGERIA", "KE", "KENYA",
    }),
}

REGIONS = frozenset(REGION_GEOGRAPHIES) | {OTHER_REGION, UNKNOWN_REGION}


def map_geography_to_region(geography: Optional[str]) -> str:
    """
    Map a free-text country/geography to its macro-region.

    Matching is case-insensitive. Missing geography maps to "Unknown";
    anything not in the lookup lists maps to "Other".
    """
    if not geography or not geography.strip():
        return UNKNOWN_REGION

    geo = geography.strip().upper()
    for region, geographies in REGION_GEOGRAPHIES.items():
        if geo in geographies:
            return region
    return OTHER_REGION


def resolve_region(value: str) -> str:
    """Pass region names through unchanged; map anything else as a geography."""
    if value in REGIONS:
        return value
    return map_geography_to_region(value)
