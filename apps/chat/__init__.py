"""Chat application."""
