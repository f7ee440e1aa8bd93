# codesync/cli/__init__.py
"""codesync command line interface."""
