"""Core gameplay primitives (errors and session events).

Kept free of FastAPI and redis concerns so the session logic can be driven by the API,
a CLI, or tests alike.
"""
