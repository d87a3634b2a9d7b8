"""Shared utilities (merge, I/O, paths)."""
