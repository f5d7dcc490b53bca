"""
Sale Attribution Backend Package.

FastAPI service that reconstructs which campaign/creative most plausibly drove
a sale, starting from the free-text notification posted by the sales bot and
the click/pageview events recorded by UTMify.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, dependencies and exceptions
    - models: Pydantic schemas and enums
    - services: Parsing, click-time estimation, ranking and collaborators
"""

__version__ = "1.0.0"
