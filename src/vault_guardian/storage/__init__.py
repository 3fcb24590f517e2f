"""Persisted record storage for the guardian Config."""
