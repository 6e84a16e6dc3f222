"""Shared response models for endpoints that return simple JSON dicts."""

from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: str


class MessageResponse(BaseModel):
    message: str
