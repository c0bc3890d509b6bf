"""Shared infrastructure helpers (logging, exceptions)."""
