"""Shared helpers (dates, atomic file writes)."""
