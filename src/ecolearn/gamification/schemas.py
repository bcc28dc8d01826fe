"""Pydantic response models for badge endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class BadgeDefinitionResponse(BaseModel):
    id: int
    code: str
    name: str
    description: str = ""
    threshold: int
    icon: str = ""
    theme: str = "emerald"
    order: int


class AllBadgesResponse(BaseModel):
    badges: list[BadgeDefinitionResponse]
