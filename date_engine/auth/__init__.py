"""Request authorization helpers."""
