"""Guardian services."""
