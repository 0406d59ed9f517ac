"""
Country name -> ISO 3166-1 alpha-3 resolution for boundary features.

Natural Earth and other world datasets label countries inconsistently
(ISO_A3 is "-99" for several disputed/sovereign-mismatch rows), so the
resolver falls back from codes to names to fuzzy name matching.
"""
from __future__ import annotations

from typing import Dict, List, Optional


UNKNOWN_CODE = "UNK"

# Natural Earth uses -99 for "no code assigned"
_NO_CODE = {"-99", "-1", ""}

# Property names probed for a country identifier, in priority order
CANDIDATE_PROPERTIES = (
    "ISO_A3",
    "ADM0_A3",
    "SOV_A3",
    "NAME",
    "NAME_EN",
    "ADMIN",
    "SOVEREIGNT",
    "country",
    "name",
)

# Substring matching on shorter names produces false hits ("US" in "Australia")
_MIN_PARTIAL_LEN = 4

COUNTRY_CODE_MAP: Dict[str, str] = {
    # North America
    "United States": "USA",
    "United States of America": "USA",
    "Canada": "CAN",
    "Mexico": "MEX",

    # Caribbean and Central America
    "Cuba": "CUB",
    "Jamaica": "JAM",
    "Haiti": "HTI",
    "Dominican Republic": "DOM",
    "Bahamas": "BHS",
    "Barbados": "BRB",
    "Trinidad and Tobago": "TTO",
    "Antigua and Barbuda": "ATG",
    "Saint Lucia": "LCA",
    "Grenada": "GRD",
    "Saint Vincent and the Grenadines": "VCT",
    "Dominica": "DMA",
    "Saint Kitts and Nevis": "KNA",
    "Guatemala": "GTM",
    "Belize": "BLZ",
    "El Salvador": "SLV",
    "Honduras": "HND",
    "Nicaragua": "NIC",
    "Costa Rica": "CRI",
    "Panama": "PAN",

    # South America
    "Brazil": "BRA",
    "Argentina": "ARG",
    "Chile": "CHL",
    "Colombia": "COL",
    "Peru": "PER",
    "Venezuela": "VEN",
    "Ecuador": "ECU",
    "Bolivia": "BOL",
    "Paraguay": "PRY",
    "Uruguay": "URY",
    "Guyana": "GUY",
    "Suriname": "SUR",

    # Superpowers & Major Powers
    "China": "CHN",
    "People's Republic of China": "CHN",
    "India": "IND",
    "Russia": "RUS",
    "Russian Federation": "RUS",
    "Germany": "DEU",
    "France": "FRA",
    "United Kingdom": "GBR",
    "Japan": "JPN",
    "Australia": "AUS",
    "Italy": "ITA",
    "Spain": "ESP",

    # Europe West
    "Netherlands": "NLD",
    "Belgium": "BEL",
    "Switzerland": "CHE",
    "Austria": "AUT",
    "Portugal": "PRT",
    "Ireland": "IRL",
    "Luxembourg": "LUX",
    "Denmark": "DNK",
    "Sweden": "SWE",
    "Norway": "NOR",
    "Finland": "FIN",
    "Iceland": "ISL",

    # Europe East
    "Ukraine": "UKR",
    "Poland": "POL",
    "Romania": "ROU",
    "Czech Republic": "CZE",
    "Czechia": "CZE",
    "Hungary": "HUN",
    "Slovakia": "SVK",
    "Bulgaria": "BGR",
    "Croatia": "HRV",
    "Serbia": "SRB",
    "Slovenia": "SVN",
    "Bosnia and Herzegovina": "BIH",
    "Montenegro": "MNE",
    "North Macedonia": "MKD",
    "Macedonia": "MKD",
    "Albania": "ALB",
    "Belarus": "BLR",
    "Lithuania": "LTU",
    "Latvia": "LVA",
    "Estonia": "EST",
    "Moldova": "MDA",

    # Middle East & North Africa
    "Turkey": "TUR",
    "Iran": "IRN",
    "Iraq": "IRQ",
    "Syria": "SYR",
    "Jordan": "JOR",
    "Lebanon": "LBN",
    "Israel": "ISR",
    "Palestine": "PSE",
    "Saudi Arabia": "SAU",
    "United Arab Emirates": "ARE",
    "Kuwait": "KWT",
    "Qatar": "QAT",
    "Bahrain": "BHR",
    "Oman": "OMN",
    "Yemen": "YEM",
    "Egypt": "EGY",
    "Libya": "LBY",
    "Tunisia": "TUN",
    "Algeria": "DZA",
    "Morocco": "MAR",
    "Sudan": "SDN",

    # South Asia
    "Pakistan": "PAK",
    "Bangladesh": "BGD",
    "Sri Lanka": "LKA",
    "Nepal": "NPL",
    "Bhutan": "BTN",
    "Maldives": "MDV",
    "Afghanistan": "AFG",

    # Southeast Asia
    "Indonesia": "IDN",
    "Thailand": "THA",
    "Malaysia": "MYS",
    "Singapore": "SGP",
    "Philippines": "PHL",
    "Vietnam": "VNM",
    "Myanmar": "MMR",
    "Cambodia": "KHM",
    "Laos": "LAO",
    "Brunei": "BRN",
    "Timor-Leste": "TLS",

    # East Asia
    "South Korea": "KOR",
    "Republic of Korea": "KOR",
    "North Korea": "PRK",
    "Taiwan": "TWN",

    # Central Asia
    "Kazakhstan": "KAZ",
    "Uzbekistan": "UZB",
    "Turkmenistan": "TKM",
    "Kyrgyzstan": "KGZ",
    "Tajikistan": "TJK",
    "Mongolia": "MNG",

    # Africa
    "South Africa": "ZAF",
    "Nigeria": "NGA",
    "Kenya": "KEN",
    "Ethiopia": "ETH",
    "Ghana": "GHA",
    "Tanzania": "TZA",
    "Uganda": "UGA",
    "Mozambique": "MOZ",
    "Madagascar": "MDG",
    "Cameroon": "CMR",
    "Angola": "AGO",
    "Mali": "MLI",
    "Burkina Faso": "BFA",
    "Niger": "NER",
    "Malawi": "MWI",
    "Zambia": "ZMB",
    "Senegal": "SEN",
    "Somalia": "SOM",
    "Chad": "TCD",
    "Guinea": "GIN",
    "Rwanda": "RWA",
    "Benin": "BEN",
    "Burundi": "BDI",
    "South Sudan": "SSD",
    "Togo": "TGO",
    "Sierra Leone": "SLE",
    "Liberia": "LBR",
    "Mauritania": "MRT",
    "Eritrea": "ERI",
    "Gambia": "GMB",
    "Botswana": "BWA",
    "Gabon": "GAB",
    "Lesotho": "LSO",
    "Guinea-Bissau": "GNB",
    "Equatorial Guinea": "GNQ",
    "Mauritius": "MUS",
    "Eswatini": "SWZ",
    "Swaziland": "SWZ",
    "Djibouti": "DJI",
    "Comoros": "COM",
    "Cape Verde": "CPV",
    "Sao Tome and Principe": "STP",
    "Seychelles": "SYC",

    # Oceania
    "New Zealand": "NZL",
    "Papua New Guinea": "PNG",
    "Fiji": "FJI",
    "Solomon Islands": "SLB",
    "Vanuatu": "VUT",
    "Samoa": "WSM",
    "Micronesia": "FSM",
    "Tonga": "TON",
    "Kiribati": "KIR",
    "Palau": "PLW",
    "Marshall Islands": "MHL",
    "Tuvalu": "TUV",
    "Nauru": "NRU",
}


def _candidates(properties: Dict) -> List[str]:
    out: List[str] = []
    for key in CANDIDATE_PROPERTIES:
        v = properties.get(key)
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in _NO_CODE:
            out.append(s)
    return out


def resolve_country_code(feature: Dict) -> str:
    """
    Best-effort ISO_A3 code for a GeoJSON feature.

    Order: a 3-letter ISO_A3 property, exact name lookup, case-insensitive
    partial name match, then the first candidate value (or "UNK").
    The fallback may not be a valid code; see is_known_code().
    """
    props = feature.get("properties") or {}

    iso = str(props.get("ISO_A3") or "").strip()
    if len(iso) == 3 and iso not in _NO_CODE:
        return iso.upper()

    names = _candidates(props)
    for name in names:
        code = COUNTRY_CODE_MAP.get(name)
        if code:
            return code

    for name in names:
        if len(name) < _MIN_PARTIAL_LEN:
            continue
        lowered = name.lower()
        for known, code in COUNTRY_CODE_MAP.items():
            k = known.lower()
            if k in lowered or lowered in k:
                return code

    return names[0] if names else UNKNOWN_CODE


def is_known_code(code: Optional[str]) -> bool:
    return bool(code) and code != UNKNOWN_CODE and len(code) == 3 and code.isalpha()
