"""Command-line front-end for po."""
