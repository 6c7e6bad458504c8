"""
Shopify Admin GraphQL documents used by the product push.

Each operation is registered under a short name together with the root
field of its response, so the gateway can be invoked as
``execute("create_product", variables, store)`` and hand back the unwrapped
root without the caller knowing the document.
Version: 1.0.0
"""
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Operation:
    name: str
    document: str
    # Response root field, e.g. "productCreate"
    root_field: str


CREATE_PRODUCT = """
mutation productCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product {
      id
      title
      handle
      options { id name values }
      variants(first: 10) {
        edges {
          node {
            id
            title
            price
            selectedOptions { name value }
            inventoryItem { id }
          }
        }
      }
    }
    userErrors { field message }
  }
}
"""

# Images are processed asynchronously after this returns
CREATE_MEDIA = """
mutation productCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media {
      ... on MediaImage {
        id
        status
        alt
        image { url }
      }
    }
    mediaUserErrors { field message }
  }
}
"""

GET_PRODUCT_MEDIA = """
query getProductMedia($id: ID!) {
  product(id: $id) {
    media(first: 50) {
      edges {
        node {
          ... on MediaImage {
            id
            status
            alt
            image { id url }
          }
        }
      }
    }
  }
}
"""

BULK_CREATE_VARIANTS = """
mutation productVariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkCreate(productId: $productId, variants: $variants) {
    productVariants {
      id
      title
      price
      selectedOptions { name value }
      inventoryItem { id }
    }
    userErrors { field message }
  }
}
"""

BULK_UPDATE_VARIANTS = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants {
      id
      title
      price
      media(first: 1) {
        edges { node { ... on MediaImage { id alt } } }
      }
    }
    userErrors { field message }
  }
}
"""

# location.name needs extra access scopes, so only the id is requested
GET_INVENTORY_ITEM = """
query getInventoryItem($id: ID!) {
  inventoryItem(id: $id) {
    id
    inventoryLevels(first: 5) {
      edges {
        node {
          id
          location { id }
          quantities(names: ["available"]) { name quantity }
        }
      }
    }
  }
}
"""

SET_INVENTORY_QUANTITIES = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
  inventorySetQuantities(input: $input) {
    inventoryAdjustmentGroup { createdAt reason }
    userErrors { field message }
  }
}
"""

UPDATE_PRODUCT = """
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product {
      id
      title
      status
      descriptionHtml
      seo { title description }
    }
    userErrors { field message }
  }
}
"""

DELETE_PRODUCT = """
mutation productDelete($input: ProductDeleteInput!) {
  productDelete(input: $input) {
    deletedProductId
    userErrors { field message }
  }
}
"""

GET_PRODUCT = """
query getProduct($id: ID!) {
  product(id: $id) {
    id
    title
    handle
    status
    descriptionHtml
    vendor
    productType
    tags
    seo { title description }
    options { id name values }
    variants(first: 100) {
      edges {
        node {
          id
          title
          price
          compareAtPrice
          sku
          selectedOptions { name value }
          inventoryItem { id }
          media(first: 1) { edges { node { ... on MediaImage { id alt } } } }
        }
      }
    }
    media(first: 50) {
      edges { node { ... on MediaImage { id status alt image { url } } } }
    }
  }
}
"""


OPERATIONS: Dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("create_product", CREATE_PRODUCT, "productCreate"),
        Operation("create_media", CREATE_MEDIA, "productCreateMedia"),
        Operation("get_product_media", GET_PRODUCT_MEDIA, "product"),
        Operation("bulk_create_variants", BULK_CREATE_VARIANTS, "productVariantsBulkCreate"),
        Operation("bulk_update_variants", BULK_UPDATE_VARIANTS, "productVariantsBulkUpdate"),
        Operation("get_inventory_item", GET_INVENTORY_ITEM, "inventoryItem"),
        Operation("set_inventory_quantities", SET_INVENTORY_QUANTITIES, "inventorySetQuantities"),
        Operation("update_product", UPDATE_PRODUCT, "productUpdate"),
        Operation("delete_product", DELETE_PRODUCT, "productDelete"),
        Operation("get_product", GET_PRODUCT, "product"),
    )
}


def get_operation(name: str) -> Operation:
    try:
        return OPERATIONS[name]
    except KeyError:
        raise ValueError(f"Unknown Shopify operation: {name}") from None
