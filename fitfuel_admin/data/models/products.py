from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .record import Record

CATEGORIES: List[str] = ["Fruits", "Nuts", "Beverages", "Mixed Options"]
NUTRITION_UNITS: List[str] = ["g", "mg", "mcg", "IU", "%", "kcal"]


class NutritionFact(BaseModel):
    """One row of a product's nutrition table."""
    name: str = Field(description="Nutrient name")
    value: str = Field(default="", description="Amount as entered")
    unit: str = Field(default="g", description="Unit of the amount")


def default_nutrition_facts() -> List[NutritionFact]:
    return [
        NutritionFact(name="Calories", value="", unit="kcal"),
        NutritionFact(name="Protein", value="", unit="g"),
        NutritionFact(name="Carbs", value="", unit="g"),
        NutritionFact(name="Fat", value="", unit="g"),
    ]


class Product(Record):
    """Catalog entry."""
    name: str = Field(description="Product name")
    price: float = Field(description="Regular price")
    discount_price: Optional[float] = Field(default=None, description="Discounted price, if any")
    weight: str = Field(default="", description="Weight or quantity label")
    delivery_time: str = Field(default="10 min", description="Promised delivery time label")
    category: str = Field(default="Fruits", description="Catalog category, normally one of CATEGORIES")
    description: str = Field(default="", description="Free-text description")
    tags: List[str] = Field(default_factory=list, description="Search tags")
    in_stock: bool = Field(default=True, description="Available for ordering")
    is_featured: bool = Field(default=False, description="Shown in featured carousels")
    is_popular: bool = Field(default=False, description="Shown in popular lists")
    image: Optional[str] = Field(default=None, description="Image URL")
    nutrition_facts: List[NutritionFact] = Field(default_factory=list, description="Nutrition table")
