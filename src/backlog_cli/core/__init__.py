"""Core helpers shared across the Backlog CLI."""
