"""
Variant/option reconciler — decides which variants Shopify already created.

Creating a product with option definitions makes Shopify materialise exactly
one variant: the combination of the first value of every option. The other
requested variants must be created explicitly. This module works out that
split and merges the two sets of remote variants back into descriptor order.
All functions are pure.
Version: 1.0.0
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from commerce_sync.core.constants.push import MAX_OPTION_DIMENSIONS
from commerce_sync.schemas.products import ProductOption, VariantDescriptor
from commerce_sync.schemas.push import VariantInfo

logger = logging.getLogger("variant_reconciler")

FirstValues = Tuple[Optional[str], Optional[str], Optional[str]]


@dataclass(frozen=True)
class VariantPlan:
    """Which descriptor the auto-created variant stands for, and what to create."""

    auto_index: Optional[int]
    to_create: List[Tuple[int, VariantDescriptor]] = field(default_factory=list)
    # True when the bound descriptor's option values differ from the
    # auto-created combination and must be corrected on update
    rebind_options: bool = False

    @property
    def descriptors_to_create(self) -> List[VariantDescriptor]:
        return [v for _, v in self.to_create]


def first_option_values(options: Sequence[ProductOption]) -> FirstValues:
    """First declared value per dimension; what Shopify assigns on creation."""
    firsts: List[Optional[str]] = []
    for idx in range(MAX_OPTION_DIMENSIONS):
        if idx < len(options) and options[idx].values:
            firsts.append(options[idx].values[0])
        else:
            firsts.append(None)
    return (firsts[0], firsts[1], firsts[2])


def is_auto_created(variant: VariantDescriptor, firsts: FirstValues) -> bool:
    """Every populated option slot equals that dimension's first value."""
    for value, first in zip(variant.option_values, firsts):
        if not value:
            continue
        if first is None or value != first:
            return False
    return True


def reconcile_variants(
    variants: Sequence[VariantDescriptor],
    options: Sequence[ProductOption],
) -> VariantPlan:
    if not variants:
        return VariantPlan(auto_index=None)

    firsts = first_option_values(options)

    # Single-variant products never create variants explicitly
    if len(variants) == 1:
        rebind = bool(options) and not is_auto_created(variants[0], firsts)
        return VariantPlan(auto_index=0, rebind_options=rebind)

    auto_index = next(
        (i for i, v in enumerate(variants) if is_auto_created(v, firsts)),
        None,
    )
    rebind = False
    if auto_index is None:
        logger.warning(
            "no variant matches auto-created combination %s; binding it to the first descriptor",
            [f for f in firsts if f],
        )
        auto_index = 0
        rebind = True

    to_create = [(i, v) for i, v in enumerate(variants) if i != auto_index]
    return VariantPlan(auto_index=auto_index, to_create=to_create, rebind_options=rebind)


def variants_to_create(
    variants: Sequence[VariantDescriptor],
    options: Sequence[ProductOption],
) -> List[VariantDescriptor]:
    """Descriptors that need an explicit bulk-create call."""
    return reconcile_variants(variants, options).descriptors_to_create


def merge_variant_infos(
    plan: VariantPlan,
    auto_variant: VariantInfo,
    created: Sequence[VariantInfo],
) -> List[VariantInfo]:
    """
    Order remote variants to match the descriptors one-to-one.

    ``created`` must be in the same order as ``plan.to_create``.
    """
    if len(created) != len(plan.to_create):
        raise ValueError(
            f"expected {len(plan.to_create)} created variants, got {len(created)}"
        )
    if plan.auto_index is None:
        return [auto_variant]

    total = len(plan.to_create) + 1
    ordered: List[Optional[VariantInfo]] = [None] * total
    ordered[plan.auto_index] = auto_variant
    for (index, _), info in zip(plan.to_create, created):
        ordered[index] = info
    return [info for info in ordered if info is not None]
