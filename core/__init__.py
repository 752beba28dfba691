"""Core project configuration and shared infrastructure."""
