"""HTTP layer - FastAPI application, routes and error mapping."""
