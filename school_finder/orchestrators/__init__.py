"""Pipeline orchestration.

Runs the stages in dependency order:
1. Download raw inputs (optional)
2. Schools → boundaries → commute times → house prices
"""
