from __future__ import annotations

from typing import Optional

from pydantic import Field

from .record import Record


class UserResponse(Record):
    """Customer profile referenced by orders and push tokens."""
    name: Optional[str] = Field(default=None, description="Full name")
    display_name: Optional[str] = Field(default=None, description="Display name fallback")
    phone: Optional[str] = Field(default=None, description="Contact phone")
    address: Optional[str] = Field(default=None, description="Delivery address")
