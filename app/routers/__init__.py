"""
Paywise Payroll Engine - Routers Package

FastAPI route handlers.

Routers:
- payroll: Payroll preview, confirmation and retrieval
"""

from app.routers import payroll

__all__ = ["payroll"]
