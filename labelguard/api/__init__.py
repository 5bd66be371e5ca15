"""HTTP surface: review envelope adapter and the FastAPI webhook server."""
