"""Static nation facts used to enrich boundary files and build placeholder geometry."""
from __future__ import annotations

from typing import Dict, NamedTuple, Tuple

from common.types import GameMetadata


class CountryExtent(NamedTuple):
    name: str
    center: Tuple[float, float]        # lon, lat
    half_extent: Tuple[float, float]   # deg lon, deg lat


# Countries every detail level must provide (placeholders are generated if missing)
REQUIRED_COUNTRIES: Tuple[str, ...] = (
    "USA", "CAN", "MEX", "BRA", "ARG", "GBR", "FRA", "DEU", "ITA", "ESP",
    "RUS", "CHN", "IND", "JPN", "AUS", "ZAF", "EGY", "TUR", "SAU", "IRN",
    "NOR", "SWE", "FIN", "POL", "UKR", "KOR", "THA", "IDN", "NGA", "KEN",
)

# Countries the validator expects at every level
EXPECTED_COUNTRIES: Tuple[str, ...] = REQUIRED_COUNTRIES[:20]

COUNTRY_EXTENTS: Dict[str, CountryExtent] = {
    "USA": CountryExtent("United States of America", (-98, 39), (35, 15)),
    "CAN": CountryExtent("Canada", (-106, 56), (60, 25)),
    "MEX": CountryExtent("Mexico", (-102, 23), (25, 15)),
    "BRA": CountryExtent("Brazil", (-55, -15), (35, 25)),
    "ARG": CountryExtent("Argentina", (-64, -34), (20, 25)),
    "GBR": CountryExtent("United Kingdom", (-2, 54), (6, 8)),
    "FRA": CountryExtent("France", (2, 46), (8, 8)),
    "DEU": CountryExtent("Germany", (10, 51), (8, 6)),
    "ITA": CountryExtent("Italy", (12, 42), (8, 10)),
    "ESP": CountryExtent("Spain", (-4, 40), (10, 8)),
    "RUS": CountryExtent("Russia", (100, 60), (120, 30)),
    "CHN": CountryExtent("China", (104, 35), (35, 25)),
    "IND": CountryExtent("India", (77, 20), (25, 20)),
    "JPN": CountryExtent("Japan", (138, 36), (12, 8)),
    "AUS": CountryExtent("Australia", (133, -25), (35, 20)),
    "ZAF": CountryExtent("South Africa", (24, -29), (15, 10)),
    "EGY": CountryExtent("Egypt", (30, 26), (12, 8)),
    "TUR": CountryExtent("Turkey", (35, 39), (15, 6)),
    "SAU": CountryExtent("Saudi Arabia", (45, 24), (20, 15)),
    "IRN": CountryExtent("Iran", (53, 32), (18, 12)),
    "NOR": CountryExtent("Norway", (8, 60), (12, 15)),
    "SWE": CountryExtent("Sweden", (15, 62), (8, 12)),
    "FIN": CountryExtent("Finland", (26, 64), (10, 8)),
    "POL": CountryExtent("Poland", (20, 52), (8, 6)),
    "UKR": CountryExtent("Ukraine", (32, 49), (15, 8)),
    "KOR": CountryExtent("South Korea", (128, 36), (4, 6)),
    "THA": CountryExtent("Thailand", (101, 15), (8, 10)),
    "IDN": CountryExtent("Indonesia", (118, -2), (30, 15)),
    "NGA": CountryExtent("Nigeria", (8, 10), (12, 8)),
    "KEN": CountryExtent("Kenya", (38, 1), (8, 8)),
}

_DEFAULT_EXTENT = ((0.0, 0.0), (10.0, 10.0))

GAME_METADATA: Dict[str, GameMetadata] = {
    "USA": GameMetadata("United States", "North America", 1990, "Federal Republic", "Liberal Democracy", 5.9e12, 248709873, "Washington D.C."),
    "CAN": GameMetadata("Canada", "North America", 1990, "Federal Parliamentary Democracy", "Liberal Democracy", 593.3e9, 27791000, "Ottawa"),
    "CHN": GameMetadata("China", "East Asia", 1990, "Socialist Republic", "State Socialism", 390.3e9, 1143333000, "Beijing"),
    "RUS": GameMetadata("Russia", "Eastern Europe", 1991, "Federal Republic", "Transitional", 507.1e9, 148292000, "Moscow"),
    "DEU": GameMetadata("Germany", "Western Europe", 1990, "Federal Republic", "Liberal Democracy", 1.768e12, 79479000, "Berlin"),
    "GBR": GameMetadata("United Kingdom", "Western Europe", 1990, "Constitutional Monarchy", "Liberal Democracy", 1.094e12, 57247000, "London"),
    "FRA": GameMetadata("France", "Western Europe", 1990, "Semi-Presidential Republic", "Liberal Democracy", 1.275e12, 56715000, "Paris"),
    "JPN": GameMetadata("Japan", "East Asia", 1990, "Constitutional Monarchy", "Liberal Democracy", 3.103e12, 123611000, "Tokyo"),
    "IND": GameMetadata("India", "South Asia", 1990, "Federal Republic", "Liberal Democracy", 326.6e9, 870133480, "New Delhi"),
    "AUS": GameMetadata("Australia", "Oceania", 1990, "Federal Parliamentary Democracy", "Liberal Democracy", 310.8e9, 17065000, "Canberra"),
    "BRA": GameMetadata("Brazil", "South America", 1990, "Federal Republic", "Liberal Democracy", 461.9e9, 150368000, "Brasília"),
}


def country_name(code: str) -> str:
    ext = COUNTRY_EXTENTS.get(code)
    return ext.name if ext else code


def country_extent(code: str) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    ext = COUNTRY_EXTENTS.get(code)
    return (ext.center, ext.half_extent) if ext else _DEFAULT_EXTENT


def game_metadata(code: str) -> GameMetadata:
    """Known nation facts, or neutral defaults named after the country."""
    meta = GAME_METADATA.get(code)
    if meta is not None:
        return meta
    return GameMetadata(display_name=country_name(code))
