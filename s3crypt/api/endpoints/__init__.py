"""Object storage endpoints (list, get, delete)."""
