"""Domain services for the shopping assistant."""
