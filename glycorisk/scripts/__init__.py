"""Command-line helpers for offline assessments."""
