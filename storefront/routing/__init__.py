"""
Routing Module

Page enumeration, redirect transition table, view descriptors and the
router that ties them to the session signal.
"""

from storefront.routing.pages import Page
from storefront.routing.router import ViewRouter
from storefront.routing.views import LayoutView, Screen, ScreenView

__all__ = ["Page", "ViewRouter", "LayoutView", "Screen", "ScreenView"]
