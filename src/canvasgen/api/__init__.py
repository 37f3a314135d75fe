"""Canvasgen - FastAPI REST API layer.

Modules
-------
main
    FastAPI application factory, route handlers, authentication middleware
    and the ``main()`` CLI entry point.
"""
