"""
Route Transition Table

The redirect rules of the storefront, one table entry per rule:

    1. hold_until_ready          ready is False → nothing happens
    2. require_sign_in           signed out, page not public → auth
    3. leave_auth_page           signed in, page is auth → products
    4. details_need_selection    details without a selected order → history
    5. clear_stale_selection     page is not details, order selected → clear it

Rules 2-4 are page transitions and the first match wins. Rule 5 is a side
effect applied against the page that results from 2-4. evaluate() runs one
pass; settle() repeats passes until nothing fires.

Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from storefront.models import OrderRef
from storefront.routing.pages import PUBLIC_PAGES, Page
from storefront.services.backend.base import UserRecord

logger = logging.getLogger(__name__)

MAX_SETTLE_PASSES = 5


@dataclass(frozen=True)
class RouteState:
    """Inputs the redirect rules look at."""
    ready: bool
    user: Optional[UserRecord]
    page: Page
    selected_order: Optional[OrderRef] = None


@dataclass(frozen=True)
class Transition:
    """
    One row of the table.

    Attributes:
        name: Rule identifier, reported in RouteDecision.fired
        guard: Whether the rule applies to a state
        apply: The state the rule produces
    """
    name: str
    guard: Callable[[RouteState], bool]
    apply: Callable[[RouteState], RouteState]


@dataclass(frozen=True)
class RouteDecision:
    state: RouteState
    fired: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.fired)


# =============================================================================
# TABLE
# =============================================================================

HOLD_UNTIL_READY = Transition(
    name="hold_until_ready",
    guard=lambda s: not s.ready,
    apply=lambda s: s,
)

REQUIRE_SIGN_IN = Transition(
    name="require_sign_in",
    guard=lambda s: s.user is None and s.page not in PUBLIC_PAGES,
    apply=lambda s: replace(s, page=Page.AUTH),
)

LEAVE_AUTH_PAGE = Transition(
    name="leave_auth_page",
    guard=lambda s: s.user is not None and s.page == Page.AUTH,
    apply=lambda s: replace(s, page=Page.PRODUCTS),
)

DETAILS_NEED_SELECTION = Transition(
    name="details_need_selection",
    guard=lambda s: s.page == Page.DETAILS and s.selected_order is None,
    apply=lambda s: replace(s, page=Page.HISTORY),
)

CLEAR_STALE_SELECTION = Transition(
    name="clear_stale_selection",
    guard=lambda s: s.page != Page.DETAILS and s.selected_order is not None,
    apply=lambda s: replace(s, selected_order=None),
)

PAGE_TRANSITIONS = (REQUIRE_SIGN_IN, LEAVE_AUTH_PAGE, DETAILS_NEED_SELECTION)
SIDE_EFFECTS = (CLEAR_STALE_SELECTION,)


def evaluate(state: RouteState) -> RouteDecision:
    """Run one pass of the table over state."""
    if HOLD_UNTIL_READY.guard(state):
        return RouteDecision(state=state)

    fired = []
    for transition in PAGE_TRANSITIONS:
        if transition.guard(state):
            state = transition.apply(state)
            fired.append(transition.name)
            break

    for transition in SIDE_EFFECTS:
        if transition.guard(state):
            state = transition.apply(state)
            fired.append(transition.name)

    return RouteDecision(state=state, fired=tuple(fired))


def settle(state: RouteState) -> RouteDecision:
    """
    Apply the table until it reaches a fixed point.

    Returns:
        RouteDecision with the settled state and every rule that fired
    """
    fired: list[str] = []
    for _ in range(MAX_SETTLE_PASSES):
        decision = evaluate(state)
        if not decision.changed:
            break
        state = decision.state
        fired.extend(decision.fired)
    else:
        logger.warning(f"Route table did not settle after {MAX_SETTLE_PASSES} passes: {fired}")

    return RouteDecision(state=state, fired=tuple(fired))
