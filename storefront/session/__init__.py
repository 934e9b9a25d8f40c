"""
Session Module

Auth state for the storefront. The per-visitor composition root lives in
storefront.session.context (it depends on the routing package, which in
turn depends on the observer exported here).
"""

from storefront.session.observer import SessionObserver, SessionSignal

__all__ = ["SessionObserver", "SessionSignal"]
