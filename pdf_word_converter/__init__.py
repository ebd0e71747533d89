"""PDF to Word conversion service and upload client.

Subpackages:
- services: temp storage, validation and batch conversion
- web: FastAPI application and endpoints
- client: job tracker, history log and API client
"""

__version__ = "1.0.0"
