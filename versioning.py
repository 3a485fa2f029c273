"""Centralised version and naming information for Gradia.

Single source of truth for the application version and human-readable
metadata. The runtime, the About page and packaging read it so the
strings are not duplicated across the codebase.
"""
from __future__ import annotations


APP_NAME: str = "Gradia"
APP_EXE_NAME: str = "gradia"
APP_VERSION: str = "0.1.0"
APP_DESCRIPTION: str = "Gradia - Gradient screensaver with preset quick start, multi-monitor sessions and an optional password lock."
APP_COMPANY: str = "Gradia contributors"
APP_ORGANIZATION: str = "Gradia"


__all__ = [
    "APP_NAME",
    "APP_EXE_NAME",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "APP_COMPANY",
    "APP_ORGANIZATION",
]
