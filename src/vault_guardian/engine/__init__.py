"""Guardian engine and per-request sessions."""
