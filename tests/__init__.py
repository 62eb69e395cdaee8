"""
Test suite for threadkit.

- Unit tests exercise the domain against scripted backends
- Integration tests drive the FastAPI app in-process with TestClient
"""
