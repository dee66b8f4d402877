"""Product screens: form validation, saves, toggles and bulk actions."""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from fitfuel_admin.core.aggregates import AggregateDefinition
from fitfuel_admin.core.mutations import BulkResult
from fitfuel_admin.core.views import CollectionView
from fitfuel_admin.data.interface import BlobStore, Gateway
from fitfuel_admin.data.models import CATEGORIES, NutritionFact, Product, SortSpec, default_nutrition_facts
from fitfuel_admin.errors import DashboardError, GatewayError, LocalValidationError, ScreenBusyError
from fitfuel_admin.logger import get_logger

logger = get_logger(__name__)

PRODUCTS = "products"
ALL_CATEGORIES = "All"
PRODUCT_SEARCH_FIELDS = ("name", "description", "tags")
SORT_FIELDS = {"name": "name", "price": "price", "createdAt": "created_at"}


def product_counters() -> AggregateDefinition:
    return AggregateDefinition({
        "in_stock": lambda p: bool(p.in_stock),
        "out_of_stock": lambda p: not p.in_stock,
        "featured": lambda p: bool(p.is_featured),
        "popular": lambda p: bool(p.is_popular),
    })


def build_product_view(gateway: Gateway, sort_by: str = "name") -> CollectionView:
    return CollectionView(
        gateway=gateway,
        collection=PRODUCTS,
        model=Product,
        definition=product_counters(),
        search_fields=PRODUCT_SEARCH_FIELDS,
        sort=SortSpec(field=SORT_FIELDS.get(sort_by, sort_by)),
    )


def set_category_filter(view: CollectionView, category: str) -> None:
    # "All" is the product pages' spelling of the no-constraint sentinel
    value = "all" if category == ALL_CATEGORIES else category
    view.set_filters(equals={"category": value})


def categories_of(products: Iterable[Product]) -> List[str]:
    return sorted({p.category for p in products if p.category})


# ---------- form input ----------

def parse_amount(text: Optional[str], field: str, label: str, positive: bool = False) -> Optional[float]:
    """Parse a price entered as text. Blank gives None."""
    if text is None or not str(text).strip():
        return None
    try:
        value = float(str(text).strip())
    except ValueError:
        raise LocalValidationError(f"{label} must be a valid number", field=field) from None
    if positive and value <= 0:
        raise LocalValidationError(f"Please enter a valid {label.lower()}", field=field)
    return value


def add_tag(tags: List[str], tag: str) -> List[str]:
    tag = tag.strip()
    if not tag or tag in tags:
        return list(tags)
    return [*tags, tag]


def remove_tag(tags: List[str], tag: str) -> List[str]:
    return [t for t in tags if t != tag]


def _check_discount(price: float, discount: Optional[float], name: str) -> None:
    if discount is not None and discount > price:
        logger.warning(f"Discount price {discount} exceeds price {price} for '{name}'")


class ProductDraft(BaseModel):
    """Raw values of the product form, as entered."""
    name: str = ""
    price: str = ""
    discount_price: str = ""
    weight: str = ""
    delivery_time: str = "10 min"
    category: str = CATEGORIES[0]
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    in_stock: bool = True
    is_popular: bool = False
    is_featured: bool = False
    nutrition_facts: List[NutritionFact] = Field(default_factory=default_nutrition_facts)
    image: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        return cls(
            name=product.name,
            price=str(product.price),
            discount_price=str(product.discount_price) if product.discount_price else "",
            weight=product.weight,
            delivery_time=product.delivery_time,
            category=product.category,
            description=product.description or "",
            tags=list(product.tags or []),
            in_stock=product.in_stock,
            is_popular=product.is_popular,
            is_featured=product.is_featured,
            nutrition_facts=list(product.nutrition_facts) or default_nutrition_facts(),
            image=product.image,
        )

    def validated_fields(self, has_image: bool) -> Dict[str, Any]:
        """Check the form and return the product fields to write."""
        if not self.name.strip():
            raise LocalValidationError("Product name is required", field="name")
        if not self.price.strip():
            raise LocalValidationError("Valid price is required", field="price")
        price = parse_amount(self.price, "price", "Price", positive=True)
        discount = parse_amount(self.discount_price, "discount_price", "Discount price", positive=True)
        if not self.weight.strip():
            raise LocalValidationError("Weight/quantity is required", field="weight")
        if not has_image:
            raise LocalValidationError("Product image is required", field="image")
        if self.category not in CATEGORIES:
            raise LocalValidationError(f"Unknown category: {self.category}", field="category")
        _check_discount(price, discount, self.name)

        fields: Dict[str, Any] = {
            "name": self.name,
            "price": price,
            "weight": self.weight,
            "delivery_time": self.delivery_time,
            "category": self.category,
            "description": self.description,
            "tags": list(self.tags),
            "in_stock": self.in_stock,
            "is_popular": self.is_popular,
            "is_featured": self.is_featured,
            "nutrition_facts": [f for f in self.nutrition_facts if f.value != ""],
        }
        if discount is not None:
            fields["discount_price"] = discount
        return fields


def image_path(filename: str, clock: Callable[[], float] = time.time) -> str:
    return f"product-images/{int(clock() * 1000)}-{filename}"


def save_product(
    view: CollectionView,
    blob_store: BlobStore,
    draft: ProductDraft,
    image: Optional[Tuple[bytes, str]] = None,
    product_id: Optional[str] = None,
    clock: Callable[[], float] = time.time,
) -> Product:
    """Create a product, or update ``product_id`` when editing.

    ``image`` is ``(content, filename)`` of a newly uploaded file. A new product needs
    one; an edit keeps the stored image unless a new file is given.
    """
    editing = product_id is not None
    fields = draft.validated_fields(has_image=image is not None or (editing and bool(draft.image)))
    if view.busy:
        raise ScreenBusyError("Cannot save the product while another action is still in progress")
    path = None
    if image is not None:
        content, filename = image
        path = image_path(filename, clock)
        fields["image"] = blob_store.store(content, path)
    try:
        if editing:
            fields.setdefault("discount_price", None)
            return view.mutations.apply(product_id, fields)
        return view.mutations.insert(fields)
    except DashboardError:
        if path is not None:
            _discard_blob(blob_store, path)
        raise


def _discard_blob(blob_store: BlobStore, path: str) -> None:
    try:
        blob_store.remove(path)
    except GatewayError as e:
        logger.warning(f"Could not remove orphaned image {path}: {e}")


def quick_edit(
    view: CollectionView,
    product_id: str,
    name: str,
    price_text: str,
    discount_text: str,
    in_stock: bool,
    is_featured: bool,
) -> Product:
    """Inline edit from the product table. A blank discount clears it."""
    price = parse_amount(price_text, "price", "Price", positive=True)
    if price is None:
        raise LocalValidationError("Please enter a valid price", field="price")
    discount = parse_amount(discount_text, "discount_price", "Discount price", positive=True)
    _check_discount(price, discount, name)
    return view.mutations.apply(product_id, {
        "name": name,
        "price": price,
        "discount_price": discount,
        "in_stock": in_stock,
        "is_featured": is_featured,
    })


def toggle_in_stock(view: CollectionView, product: Product) -> Product:
    return view.mutations.apply(product.id, {"in_stock": not product.in_stock})


def toggle_featured(view: CollectionView, product: Product) -> Product:
    return view.mutations.apply(product.id, {"is_featured": not product.is_featured})


def bulk_set_in_stock(view: CollectionView, product_ids: Iterable[str], in_stock: bool) -> BulkResult:
    return view.mutations.apply_bulk(product_ids, {"in_stock": in_stock})


def delete_product(view: CollectionView, product_id: str) -> str:
    view.mutations.delete(product_id)
    return product_id


def delete_products(view: CollectionView, product_ids: Iterable[str]) -> BulkResult:
    return view.mutations.delete_bulk(product_ids)
