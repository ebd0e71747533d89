"""Web layer for the PDF to Word converter.

This package provides the FastAPI endpoints for uploading PDFs, converting
them and downloading the results.

Main components:
- app.py: FastAPI application factory
- router_convert.py: Conversion and download endpoints
- schemas.py: Pydantic models for request/response validation
"""
