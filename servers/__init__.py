"""SFL Studio FastAPI server package."""
