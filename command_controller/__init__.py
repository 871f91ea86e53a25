"""Command grammar, dispatch bus and the application controller."""
