"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, file names, source URLs
- exceptions: Custom exception hierarchy
"""
