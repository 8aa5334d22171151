"""Blob upload gateway.

This package provides:
- A blob storage layer with MinIO and filesystem backends
- The object key and access policy layer (key derivation, existence
  probing, signed URLs, upload orchestration, retrieval and listing)
- A thin FastAPI boundary exposing those operations over HTTP
"""

__version__ = "0.1.0"

__all__ = ["core", "gateway", "api"]
