"""Database helpers for the registry's SQL storage backend."""
