"""Persistence: models, session handling and repositories."""
