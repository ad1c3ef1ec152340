"""Command-line entry points for colormesh."""
