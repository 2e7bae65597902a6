"""Saved-media folders, watch history and profile routes."""
