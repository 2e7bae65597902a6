"""Catalog synchronisation: genre and trending refresh, scheduling and maintenance."""
