"""Embedded-controller service primitives: registration lists, power policy, chargers and USB Type-C power data."""

__version__ = "0.1.0"