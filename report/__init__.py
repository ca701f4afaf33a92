"""Rendering of section results for the CLI."""
