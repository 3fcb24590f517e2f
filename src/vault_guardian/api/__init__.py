"""HTTP API for vault-guardian."""
