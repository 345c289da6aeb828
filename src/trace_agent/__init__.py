"""Trace - a terminal coding assistant driven by a tool-calling agent loop."""

__version__ = "0.3.0"
