"""DTOs for the Cars feature."""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from api.features.cars.entities.car import Car, CarCategory
from api.shared.dtos import BaseDTO


class CarDTO(BaseDTO):
    """Catalog car."""

    id: str
    make: str
    model: str
    year_min: Optional[int] = None
    year_max: Optional[int] = None
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    currency: str = "CAD"
    category: str
    category_label: Optional[Dict[str, str]] = Field(default=None, description="Bilingual category label")
    fuel_type: str
    description_en: Optional[str] = None
    description_zh: Optional[str] = None
    pros_en: List[str] = Field(default_factory=list)
    pros_zh: List[str] = Field(default_factory=list)
    cons_en: List[str] = Field(default_factory=list)
    cons_zh: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    reliability_score: Optional[int] = None
    fuel_economy: Optional[Decimal] = None
    safety_rating: Optional[int] = None

    @classmethod
    def from_entity(cls, entity: Car) -> "CarDTO":
        try:
            label = CarCategory(entity.category.lower()).labels
        except ValueError:
            label = None
        return cls(
            id=entity.id,
            make=entity.make,
            model=entity.model,
            year_min=entity.year_min,
            year_max=entity.year_max,
            price_min=entity.price_min,
            price_max=entity.price_max,
            currency=entity.currency,
            category=entity.category,
            category_label=label,
            fuel_type=entity.fuel_type,
            description_en=entity.description_en,
            description_zh=entity.description_zh,
            pros_en=list(entity.pros_en or []),
            pros_zh=list(entity.pros_zh or []),
            cons_en=list(entity.cons_en or []),
            cons_zh=list(entity.cons_zh or []),
            features=list(entity.features or []),
            image_url=entity.image_url,
            reliability_score=entity.reliability_score,
            fuel_economy=entity.fuel_economy,
            safety_rating=entity.safety_rating,
        )


class CarListResponse(BaseDTO):
    items: List[CarDTO]
    total: int
    offset: int
    limit: int


class CarSearchResponse(BaseDTO):
    query: str
    keywords: List[str] = Field(description="Search terms used against make, model and category")
    items: List[CarDTO]
