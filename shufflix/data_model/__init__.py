"""Shared data models for titles, identities and filters."""

from shufflix.data_model.base import StrictBaseModel
from shufflix.data_model.titles import (
    Candidate,
    ContentKind,
    Filters,
    MediaKind,
    ProviderLink,
    TitleKey,
)


__all__ = [
    "Candidate",
    "ContentKind",
    "Filters",
    "MediaKind",
    "ProviderLink",
    "StrictBaseModel",
    "TitleKey",
]
