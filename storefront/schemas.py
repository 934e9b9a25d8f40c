"""
Pydantic Schemas for Request/Response Validation

Requests carry the screens' callbacks (navigate, replace cart, select
order, sign in/out); every response is the resulting view.

Version: 1.0.0
"""

import re
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.models import CartItem, OrderRef, OrderStatus
from storefront.routing.router import ViewRouter


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class NavigateRequest(BaseModel):
    """Request to move to another page. Unknown pages land on products."""
    page: str = Field(..., min_length=1, max_length=50, examples=["cart"])


class CartItemIn(BaseModel):
    """Single line of the cart."""
    product_ref: str = Field(..., min_length=1, max_length=100, examples=["prod_42"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    name: str = Field(default="", max_length=100, examples=["Chicken Inasal"])
    unit_price: float = Field(default=0.0, ge=0, examples=[149.0])
    restaurant_id: Optional[str] = Field(None, max_length=100)

    def to_model(self) -> CartItem:
        return CartItem(**self.model_dump())


class CartUpdate(BaseModel):
    """Replacement contents for the cart. An empty list clears it."""
    items: List[CartItemIn] = Field(default_factory=list)


class OrderSelect(BaseModel):
    """Order picked from history for tracking."""
    id: str = Field(..., min_length=1, max_length=100)
    status: OrderStatus = Field(default=OrderStatus.PREPARING, examples=["Preparing"])
    restaurant_id: Optional[str] = Field(None, max_length=100)
    total_amount: Optional[float] = Field(None, ge=0)
    created_at: Optional[datetime] = None

    def to_model(self) -> OrderRef:
        return OrderRef(**self.model_dump())


class SignInRequest(BaseModel):
    """Email/password credentials."""
    email: str = Field(..., min_length=3, max_length=255, examples=["demo@iligan.food"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not re.match(r'^[\w\.\+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserOut(BaseModel):
    id: str
    email: Optional[str] = None


class NavItemOut(BaseModel):
    key: str
    label: str
    icon: str
    count: Optional[int] = None
    active: bool = False
    show_badge: bool = False


class HeaderOut(BaseModel):
    brand: str
    greeting: Optional[str] = None
    show_logout: bool = False


class LayoutOut(BaseModel):
    header: Optional[HeaderOut] = None
    nav_items: List[NavItemOut] = Field(default_factory=list)
    show_owner_button: bool = False


class ViewResponse(BaseModel):
    """Everything the client needs to draw the current state."""
    ready: bool
    page: str
    screen: str
    props: Dict[str, Any] = Field(default_factory=dict)
    layout: LayoutOut
    user: Optional[UserOut] = None
    display_name: str
    cart_item_count: int

    @classmethod
    def from_router(cls, router: ViewRouter) -> "ViewResponse":
        # render() first: its guards may redirect before the layout is drawn
        view = router.render()
        layout = router.layout()
        user = router.user
        return cls(
            ready=router.ready,
            page=router.page.value,
            screen=view.screen.value,
            props=view.props,
            layout=LayoutOut(
                header=HeaderOut(**asdict(layout.header)) if layout.header else None,
                nav_items=[
                    NavItemOut(
                        key=item.key.value,
                        label=item.label,
                        icon=item.icon,
                        count=item.count,
                        active=item.active,
                        show_badge=item.show_badge,
                    )
                    for item in layout.nav_items
                ],
                show_owner_button=layout.show_owner_button,
            ),
            user=UserOut(**user.to_dict()) if user else None,
            display_name=router.display_name,
            cart_item_count=router.cart_item_count,
        )


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    backend: str
    backend_provider: str
    active_sessions: int
    timestamp: datetime
