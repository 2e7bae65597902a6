"""Administrative user management routes."""
