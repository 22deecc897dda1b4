"""Command implementations registered on the ``backlog`` app."""
