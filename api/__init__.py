"""
api — Telemetry REST server
===========================

Modules
-------
server
    :func:`create_app` FastAPI factory exposing the pipeline snapshot and
    :func:`run_server` uvicorn entry point.
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
