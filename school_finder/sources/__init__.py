"""Remote data sources.

- postcode_polygons: district boundary GeoJSON from GitHub
- downloads: streaming downloads of the raw CSV inputs
"""
