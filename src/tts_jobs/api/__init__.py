"""
HTTP layer.

    - routes.py: synchronous conversion, health, voices, files, metrics
    - jobs.py: background job endpoints
    - schemas.py: Pydantic request/response models
    - dependencies.py: settings and service providers
    - errors.py: error response helpers
"""
