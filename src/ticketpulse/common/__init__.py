"""Pydantic configuration models and loaders."""
