# codesync/cli/commands/__init__.py
"""CLI command implementations, imported lazily by codesync.cli.cli."""
