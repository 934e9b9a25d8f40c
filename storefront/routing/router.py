"""
View Router

Holds the storefront's view state (current page, cart, selected order),
keeps it consistent with the session signal through the transition table,
and decides which screen to render.

The router owns its state outright: screens change it only through the
setters handed to them in their props (set_page, set_cart,
set_selected_order, on_auth_success).

Usage:
    router = ViewRouter(observer, backend)
    router.set_page(Page.CART)
    view = router.render()
    layout = router.layout()

Version: 1.0.0
"""

import logging
from typing import Iterable, Optional, Union

from storefront.core.config import get_settings
from storefront.core.constants import DEFAULT_MAP_CENTER, ORDER_STATUSES, maps_api_key
from storefront.models import CartItem, OrderRef, cart_total
from storefront.routing.pages import DEFAULT_PAGE, Page
from storefront.routing.transitions import RouteState, settle
from storefront.routing.views import (
    NAV_ENTRIES,
    HeaderView,
    LayoutView,
    NavItem,
    Screen,
    ScreenView,
    cart_item_count,
    display_name,
)
from storefront.services.backend.base import BackendError, BaseBackendService, UserRecord
from storefront.session.observer import SessionObserver, SessionSignal

logger = logging.getLogger(__name__)


class ViewRouter:
    """
    Page state machine for one storefront visitor.

    Args:
        observer: Session observer whose signal gates every redirect
        backend: Backend used for sign-out
        brand: Name shown in the header (defaults to settings.brand_name)
    """

    def __init__(
        self,
        observer: SessionObserver,
        backend: BaseBackendService,
        brand: Optional[str] = None,
    ):
        self._observer = observer
        self._backend = backend
        self._brand = brand or get_settings().brand_name

        self._page: Page = DEFAULT_PAGE
        self._cart: tuple[CartItem, ...] = ()
        self._selected_order: Optional[OrderRef] = None

        self._detach = observer.add_listener(self._on_session_change)
        self._settle()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def page(self) -> Page:
        return self._page

    @property
    def cart(self) -> tuple[CartItem, ...]:
        return self._cart

    @property
    def selected_order(self) -> Optional[OrderRef]:
        return self._selected_order

    @property
    def user(self) -> Optional[UserRecord]:
        return self._observer.user

    @property
    def ready(self) -> bool:
        return self._observer.ready

    @property
    def cart_item_count(self) -> int:
        return cart_item_count(self._cart)

    @property
    def display_name(self) -> str:
        return display_name(self._observer.user)

    # =========================================================================
    # SETTERS
    # =========================================================================

    def set_page(self, page: Union[Page, str]) -> None:
        """Navigate; unknown page values fall back to products."""
        try:
            self._page = Page(page)
        except ValueError:
            logger.debug(f"Unknown page {page!r}, falling back to {DEFAULT_PAGE.value}")
            self._page = DEFAULT_PAGE
        self._settle()

    def set_cart(self, items: Iterable[CartItem]) -> None:
        """Replace the whole cart."""
        self._cart = tuple(items)
        self._settle()

    def set_selected_order(self, order: Optional[OrderRef]) -> None:
        self._selected_order = order
        self._settle()

    def track_order(self, order: OrderRef) -> None:
        """Select an order and open its details page in one update."""
        self._selected_order = order
        self._page = Page.DETAILS
        self._settle()

    def on_auth_success(self) -> None:
        """Callback for the auth screen."""
        self.set_page(Page.PRODUCTS)

    def detach(self) -> None:
        """Stop following the session observer."""
        self._detach()

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _on_session_change(self, signal: SessionSignal) -> None:
        self._settle()

    def _settle(self) -> None:
        state = RouteState(
            ready=self._observer.ready,
            user=self._observer.user,
            page=self._page,
            selected_order=self._selected_order,
        )
        decision = settle(state)
        if not decision.changed:
            return

        if decision.state.page != self._page:
            logger.debug(
                f"Redirect {self._page.value} -> {decision.state.page.value} "
                f"({', '.join(decision.fired)})"
            )
        self._page = decision.state.page
        self._selected_order = decision.state.selected_order

    # =========================================================================
    # SIGN-OUT
    # =========================================================================

    async def sign_out(self) -> bool:
        """
        Sign out through the backend, then clear the cart and go to auth.

        A failed sign-out is logged and leaves the state untouched.

        Returns:
            bool: True if the backend accepted the sign-out
        """
        try:
            await self._backend.sign_out()
        except BackendError as e:
            logger.error(f"Sign-out failed: {e}")
            return False

        self._cart = ()
        self._page = Page.AUTH
        self._settle()
        return True

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render(self) -> ScreenView:
        """
        Pick the screen for the current state.

        Side effects are limited to the checkout and details guards, which
        redirect and render nothing for this cycle.
        """
        if not self._observer.ready:
            return ScreenView(Screen.LOADING)

        if self._page == Page.OWNER_DASHBOARD:
            return ScreenView(Screen.OWNER_DASHBOARD, {"order_statuses": list(ORDER_STATUSES)})

        user = self._observer.user
        if user is None:
            # The auth screen reports success through on_auth_success()
            return ScreenView(Screen.AUTH)

        if self._page == Page.CART:
            return ScreenView(Screen.CART, self._cart_props())

        if self._page == Page.CHECKOUT:
            if not self._cart:
                self.set_page(Page.PRODUCTS)
                return ScreenView(Screen.NONE)
            return ScreenView(Screen.CHECKOUT, {**self._cart_props(), "user": user.to_dict()})

        if self._page == Page.HISTORY:
            return ScreenView(Screen.ORDER_HISTORY, {"user": user.to_dict()})

        if self._page == Page.DETAILS:
            if self._selected_order is None:
                self.set_page(Page.HISTORY)
                return ScreenView(Screen.NONE)
            return ScreenView(
                Screen.ORDER_TRACKING,
                {
                    "order": self._selected_order.to_dict(),
                    "user": user.to_dict(),
                    "order_statuses": list(ORDER_STATUSES),
                    "map_center": DEFAULT_MAP_CENTER,
                    "maps_api_key": maps_api_key(),
                },
            )

        return ScreenView(Screen.RESTAURANT_LISTING, self._cart_props())

    def _cart_props(self) -> dict:
        return {
            "cart": [item.to_dict() for item in self._cart],
            "cart_total": cart_total(self._cart),
        }

    def layout(self) -> LayoutView:
        """Header, bottom navigation and owner shortcut for the current state."""
        if self._page == Page.OWNER_DASHBOARD:
            return LayoutView(header=None)

        user = self._observer.user
        if user is None:
            return LayoutView(header=HeaderView(brand=self._brand), show_owner_button=True)

        count = self.cart_item_count
        nav_items = tuple(
            NavItem(
                key=key,
                label=label,
                icon=icon,
                count=count if key == Page.CART else None,
                active=key == self._page,
            )
            for key, label, icon in NAV_ENTRIES
        )
        return LayoutView(
            header=HeaderView(
                brand=self._brand,
                greeting=f"Hi, {self.display_name}",
                show_logout=True,
            ),
            nav_items=nav_items,
            show_owner_button=True,
        )
