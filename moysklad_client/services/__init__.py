"""
Service layer modules wrap MoySklad endpoints on top of the request executor.
"""

__all__ = [
    "collection_service",
]
