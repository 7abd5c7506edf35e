"""Pydantic request models for the host-local REST endpoints."""
from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


class CreateGameRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    host_name: str = Field(default="Host", min_length=1, max_length=30)


class AddPlayerRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=30)


class DecideRequest(BaseModel):
    target_id: str
    action: Literal["ADD", "REMOVE"]


class SplitToggleRequest(BaseModel):
    enabled: bool


class SplitAdjustRequest(BaseModel):
    target_id: str
    delta: int = Field(ge=-6, le=6)
