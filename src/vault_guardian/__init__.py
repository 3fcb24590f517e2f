"""py-vault-guardian — Okta-authenticated Ethereum key custody on HashiCorp Vault."""

__version__ = "0.1.0"
