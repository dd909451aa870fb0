"""HTTP clients for the MAi Drive backend"""

from .auth_client import AuthApiClient

__all__ = ["AuthApiClient"]
