"""
API Layer (Presentation)

FastAPI application, request dependencies, schemas and routers.
"""
