"""
REST API (FastAPI): routers, dependencies, schemas and exception handlers.
"""
