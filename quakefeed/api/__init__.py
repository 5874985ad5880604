"""HTTP surface: FastAPI app factory and versioned routers."""
