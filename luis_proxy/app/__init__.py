"""
LUIS proxy application package.

Use ``create_app()`` from ``luis_proxy.app.main`` to build the FastAPI app.
"""
