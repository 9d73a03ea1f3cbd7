"""Command-line interface for the drilling simulator."""
