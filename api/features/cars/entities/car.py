"""Car catalog entity. Read-only to the chat pipeline."""
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import ARRAY, Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class CarCategory(str, Enum):
    """Catalog categories with their bilingual labels."""

    SEDAN = "sedan"
    SUV = "suv"
    HATCHBACK = "hatchback"
    COUPE = "coupe"
    CONVERTIBLE = "convertible"
    WAGON = "wagon"
    PICKUP = "pickup"
    MINIVAN = "minivan"
    CROSSOVER = "crossover"

    @property
    def labels(self) -> dict[str, str]:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    CarCategory.SEDAN: {"en": "Sedan", "zh": "轿车"},
    CarCategory.SUV: {"en": "SUV", "zh": "SUV"},
    CarCategory.HATCHBACK: {"en": "Hatchback", "zh": "掀背车"},
    CarCategory.COUPE: {"en": "Coupe", "zh": "轿跑车"},
    CarCategory.CONVERTIBLE: {"en": "Convertible", "zh": "敞篷车"},
    CarCategory.WAGON: {"en": "Wagon", "zh": "旅行车"},
    CarCategory.PICKUP: {"en": "Pickup", "zh": "皮卡"},
    CarCategory.MINIVAN: {"en": "Minivan", "zh": "面包车"},
    CarCategory.CROSSOVER: {"en": "Crossover", "zh": "跨界车"},
}


class Car(BaseEntity):
    """A make/model line available for recommendation."""

    make: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year_min: Mapped[Optional[int]] = mapped_column(Integer)
    year_max: Mapped[Optional[int]] = mapped_column(Integer)
    price_min: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    price_max: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="CAD")
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    fuel_type: Mapped[str] = mapped_column(String(20), nullable=False)
    description_en: Mapped[Optional[str]] = mapped_column(Text)
    description_zh: Mapped[Optional[str]] = mapped_column(Text)
    pros_en: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    pros_zh: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    cons_en: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    cons_zh: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    features: Mapped[Optional[List[str]]] = mapped_column(ARRAY(Text))
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    reliability_score: Mapped[Optional[int]] = mapped_column(Integer)
    fuel_economy: Mapped[Optional[Decimal]] = mapped_column(Numeric(4, 1))
    safety_rating: Mapped[Optional[int]] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
