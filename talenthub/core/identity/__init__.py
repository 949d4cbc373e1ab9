"""Candidate anonymization and consent-gated disclosure."""

from .identity_veil import (
    IdentityVeil,
    anonymous_label,
    broad_region,
    experience_range,
    get_identity_veil,
    salary_band,
)

__all__ = [
    "IdentityVeil",
    "anonymous_label",
    "broad_region",
    "experience_range",
    "get_identity_veil",
    "salary_band",
]
