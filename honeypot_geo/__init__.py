"""Honeypot attacker IP geolocation enrichment."""

__version__ = "0.1.0"
