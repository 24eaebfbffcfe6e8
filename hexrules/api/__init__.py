"""HTTP API: FastAPI application, routes and the generation service."""
