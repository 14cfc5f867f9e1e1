"""
Health Check Module

Liveness and store diagnostics endpoints.
"""

from .factory import create_healthcheck_module

__all__ = ["create_healthcheck_module"]
