"""Bearer token management for the MyStop gateway."""

from tcat_api.services.auth.token_cache import TokenCache, request_token

__all__ = ["TokenCache", "request_token"]
