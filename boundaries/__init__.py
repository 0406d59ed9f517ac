"""
Boundary files: per-country GeoJSON preparation

- Splits world FeatureCollections into `{level}/{ISO_A3}.json`
- Derives detail levels (simplify / densify)
- Adds standard metadata + gameMetadata, placeholders for missing countries
- Validates files and imports Natural Earth admin-0/admin-1 data
"""
