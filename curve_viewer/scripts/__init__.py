"""Command-line entry points (``python -m curve_viewer.scripts.<name>``)."""
