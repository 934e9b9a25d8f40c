"""
Storefront Constants

Values shared by the router, the layout and the screens it hands props to.
"""

from storefront.core.config import get_settings

# =============================================================================
# LOCATION
# =============================================================================

# Iligan City, Philippines
DEFAULT_MAP_CENTER = {"lat": 8.2280, "lng": 124.2452}

MAPS_API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"

# =============================================================================
# ORDERS
# =============================================================================

# Display order matters: the tracking screen renders them as a timeline.
ORDER_STATUSES = (
    "Preparing",
    "Out for Delivery",
    "Delivered",
    "Completed",
    "Cancelled",
)


def maps_api_key() -> str:
    """Google Maps key for the tracking screen, or the placeholder."""
    return get_settings().google_maps_api_key or MAPS_API_KEY_PLACEHOLDER
