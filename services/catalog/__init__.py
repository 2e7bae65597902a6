"""Upstream metadata client, formatter and media proxy routes."""
