"""Core grid primitives (coordinates, spawning, the cell store, inventory, session).

Kept free of FastAPI and Redis concerns so it can be reused by API routes, CLI, and tests.
"""
