"""
Variant–media associator.

Variants and media are created independently and share no identifier, so
images are matched to variants heuristically. The default match is a
case-insensitive substring of the variant's first option value in the
image's alt text; the first match wins.
Version: 1.0.0
"""
from typing import Callable, Dict, Sequence

from commerce_sync.schemas.push import MediaRecord, VariantInfo

MatchPredicate = Callable[[VariantInfo, MediaRecord], bool]


def alt_text_contains_option(variant: VariantInfo, media: MediaRecord) -> bool:
    if not variant.option1:
        return False
    return variant.option1.lower() in (media.alt or "").lower()


def associate_media(
    variants: Sequence[VariantInfo],
    media: Sequence[MediaRecord],
    matches: MatchPredicate = alt_text_contains_option,
) -> Dict[str, str]:
    """Map variant id -> media id; unmatched variants are left out."""
    mapping: Dict[str, str] = {}
    for variant in variants:
        match = next((m for m in media if matches(variant, m)), None)
        if match is not None:
            mapping[variant.id] = match.id
    return mapping
