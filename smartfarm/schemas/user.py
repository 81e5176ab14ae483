# smartfarm/schemas/user.py
"""
User-related Pydantic schemas.
"""
from typing import Optional
from fastapi_users import schemas


class UserRead(schemas.BaseUser[int]):
    name: Optional[str] = None
    role: str = "farmer"


class UserCreate(schemas.BaseUserCreate):
    name: Optional[str] = None
    role: Optional[str] = "farmer"
