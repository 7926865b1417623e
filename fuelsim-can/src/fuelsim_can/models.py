"""Pydantic models for the fuel sensor emulator REST API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    uptime_seconds: float


class StatusResponse(BaseModel):
    """Emulator status response."""

    state: Literal["disabled", "starting", "running", "stopping"]
    frames_sent: int
    base_id: int
    num_channels: int
    interval_s: float
    simultaneous: bool
    can_channel: str
    bus_available: bool


class ChannelModel(BaseModel):
    """State of one emulated sensor channel.

    Level and temperature are reported as stored, before clamping.
    """

    index: int
    enabled: bool
    level: float
    temperature: int
    frame_id: int


class ChannelUpdate(BaseModel):
    """Partial update of a sensor channel. Omitted fields are unchanged."""

    enabled: bool | None = None
    level: float | None = None
    temperature: int | None = None


class FrameModel(BaseModel):
    """An encoded frame as it would be sent on the bus."""

    arbitration_id: int = Field(..., ge=0, le=0x1FFFFFFF)
    data: list[int] = Field(default_factory=list, max_length=8)
    is_extended_id: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    detail: str | None = None
