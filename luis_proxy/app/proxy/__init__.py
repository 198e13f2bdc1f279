"""
Proxy Package
=============

This package forwards design-tool requests to the NLU backends.

Main Components:
----------------
- route_table.py: Static description of each backend route
- forwarder.py: Outbound HTTP calls and success detection
- state.py: Shared application state and the backend client lifetime
- routes.py: FastAPI router with the proxy endpoints

Usage:
------
    from luis_proxy.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .forwarder import BackendCallError, Forwarder
from .routes import proxy_router
from .state import AppState

__all__ = ["AppState", "BackendCallError", "Forwarder", "proxy_router"]
