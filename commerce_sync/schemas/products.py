"""
Product schemas — catalog source product, options and variant descriptors.

These models describe the read-only catalog record pushed to Shopify.
Version: 1.0.0
"""
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from commerce_sync.core.constants.push import MAX_OPTION_DIMENSIONS


def _money_to_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return f"{float(value):.2f}"
    return str(value)


class ProductOption(BaseModel):
    name: str
    values: List[str] = Field(default_factory=list)


class VariantImage(BaseModel):
    src: str


class VariantDescriptor(BaseModel):
    """One combination of option values plus price and stock data."""

    id: Optional[int] = None
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    sku: Optional[str] = None
    inventory_quantity: Optional[int] = None
    stock_quantity: Optional[int] = None
    stock_status: Optional[str] = None
    image_url: Optional[str] = None
    image: Optional[VariantImage] = None

    @field_validator("price", "compare_at_price", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> Optional[str]:
        return _money_to_str(value)

    @property
    def option_values(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        return (self.option1, self.option2, self.option3)

    @property
    def image_src(self) -> Optional[str]:
        """Per-variant image source, preferring the flat URL field."""
        if self.image_url:
            return self.image_url
        return self.image.src if self.image else None


class SourceProduct(BaseModel):
    """Catalog product record; immutable for the duration of one push."""

    model_config = {"frozen": True}

    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    vendor: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    sku: Optional[str] = None
    options: Optional[List[ProductOption]] = None
    variants: Optional[List[VariantDescriptor]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("options")
    @classmethod
    def _max_three_options(cls, value: Optional[List[ProductOption]]) -> Optional[List[ProductOption]]:
        if value and len(value) > MAX_OPTION_DIMENSIONS:
            raise ValueError(
                f"at most {MAX_OPTION_DIMENSIONS} option dimensions are supported, got {len(value)}"
            )
        return value

    @model_validator(mode="after")
    def _unique_option_combinations(self) -> "SourceProduct":
        seen = set()
        for variant in self.variants or []:
            key = variant.option_values
            if key in seen:
                raise ValueError(f"duplicate variant option combination: {key}")
            seen.add(key)
        return self
