"""FastAPI surface for browsing the directory over HTTP."""
