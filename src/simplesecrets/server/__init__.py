"""The simple-secrets HTTP service."""
