"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class TokenPurpose(str, enum.Enum):
    confirmation = "confirmation"
    password_reset = "password_reset"
