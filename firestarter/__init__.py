"""Optimisation, measurement and run configuration of a processor stress test."""

__version__ = "0.1.0"