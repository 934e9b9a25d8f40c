"""
                ILIGAN Food Storefront

Session and view controller for a food-delivery storefront backed by a
hosted backend-as-a-service, with hybrid Mock/Supabase architecture.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
