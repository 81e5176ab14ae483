# smartfarm/models/base.py
"""Declarative base shared by every model."""
from smartfarm.core.database import Base

__all__ = ["Base"]
