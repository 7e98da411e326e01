"""Pydantic schemas for EcoFlow API payloads."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiResponse(BaseModel):
    """Envelope wrapped around every EcoFlow response."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    code: str
    message: Optional[str] = None
    data: Any = None
    eagle_eye_trace_id: Optional[str] = Field(default=None, alias="eagleEyeTraceId")
    tid: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def ok(self) -> bool:
        return self.code == "0"


class Device(BaseModel):
    """Entry of the device list endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    sn: str = Field(..., min_length=1)
    device_name: Optional[str] = Field(default=None, alias="deviceName")
    product_name: Optional[str] = Field(default=None, alias="productName")
    online: bool = False


__all__ = ["ApiResponse", "Device"]
