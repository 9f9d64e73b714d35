"""
Extra Seguro Backend - REST API for claim form uploads

This package provides a FastAPI-based web service that stores claim
documents in a Microsoft 365 drive (OneDrive / SharePoint). It enables:

- Uploading ready-made PDF files
- Generating editable PDF forms (AcroForm text fields) from JSON form data
- Embedding a drawn canvas image into the generated form
- Authenticating against Microsoft Graph with the client-credentials grant

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - upload_pipeline: Per-request orchestration of render, auth and upload
    - pdf_assembler: Data-driven PDF form layout and rendering
    - token_provider: OAuth2 client-credentials token exchange
    - drive_service: Microsoft Graph drive upload client
    - configuration: Environment settings and YAML layout loading
    - models: Pydantic models for requests, responses and layout
    - errors: Exception types and their HTTP statuses

Usage:
    Run the API server with:
        uvicorn extra_seguro_backend.main:app --host 0.0.0.0 --port 3000

    Or use the console script:
        extra-seguro-backend
"""

__version__ = "0.1.0"
