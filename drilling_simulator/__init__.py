"""Drilling Simulator - discrete-time rotary drilling engine for well-control training."""

__version__ = "0.1.0"
