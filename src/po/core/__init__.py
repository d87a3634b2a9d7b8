"""Core engine: document loading, import resolution, materialization, execution."""
