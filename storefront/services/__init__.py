"""
                        Services Module

External services behind the hybrid architecture pattern.
Each service has a Mock (development) and a Real (production) implementation.

Services:
    - backend: Supabase auth (session lookup, auth change notifications, sign-in/out)
"""

from storefront.services.backend import create_backend

__all__ = ["create_backend"]
