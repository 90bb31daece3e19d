"""School Finder data pipeline.

Builds the derived artifacts consumed by the School Finder map: simplified
postcode district boundaries, per-district median house prices and commute
estimates, and geocoded school records.
"""

__version__ = "0.1.0"
