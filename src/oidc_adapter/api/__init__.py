"""FastAPI integration for the OIDC adapter."""
