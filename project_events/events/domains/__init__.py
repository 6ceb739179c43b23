"""Domain-specific event payloads."""
