"""Command-line interface for timebill."""
