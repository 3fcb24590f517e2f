"""HashiCorp Vault HTTP client."""
