"""Okta management API client."""
