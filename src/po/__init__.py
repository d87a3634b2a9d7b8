"""
po - project-scoped script dispatcher

Assembles a tree of named shell-script commands from a user-level and a
project-level ``po.yml`` (plus their imports) and exposes it as a CLI.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
