"""Infrastructure adapters - Database gateway, repositories and background jobs."""
