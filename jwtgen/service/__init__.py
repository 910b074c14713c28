"""
Service module initialization
"""

from .service import TokenGenerator, create_token_generator

__all__ = [
    "TokenGenerator",
    "create_token_generator",
]
