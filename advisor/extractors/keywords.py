"""Car keyword extraction from free-text assistant replies.

This is a plain substring heuristic over fixed vocabularies, not entity
recognition. Matching is case-insensitive; results keep vocabulary order and
are deduplicated lexically only, so "Toyota" and "丰田" may both be returned
for the same brand.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

CAR_BRANDS: Tuple[str, ...] = (
    "Toyota", "Honda", "Nissan", "Mazda", "Ford", "Chevrolet", "GMC", "Dodge",
    "RAM", "Jeep", "Chrysler", "BMW", "Mercedes", "Benz", "Audi", "Volkswagen",
    "VW", "Volvo", "Lexus", "Acura", "Infiniti", "Porsche", "Ferrari",
    "Lamborghini", "Tesla", "Hyundai", "Kia", "Subaru", "Mitsubishi", "Genesis",
    "Buick", "Cadillac", "Lincoln",
    "丰田", "本田", "日产", "马自达", "福特", "雪佛兰", "别克", "凯迪拉克", "奔驰",
    "宝马", "奥迪", "大众", "沃尔沃", "捷豹", "路虎", "保时捷", "特斯拉", "比亚迪",
    "吉利", "长城", "奇瑞", "长安", "红旗", "蔚来", "小鹏", "理想",
)

CAR_TYPES: Tuple[str, ...] = (
    "SUV", "Sedan", "Truck", "Pickup", "Van", "Minivan", "Coupe", "Convertible",
    "Hatchback", "Wagon", "Crossover", "Electric", "Hybrid", "Luxury", "Sports",
    "轿车", "跑车", "越野车", "商务车", "新能源", "电动车", "混动", "紧凑型",
    "中型车", "大型车", "小型车", "MPV", "皮卡",
)


def extract_car_keywords(
    text: str,
    brands: Sequence[str] = CAR_BRANDS,
    car_types: Sequence[str] = CAR_TYPES,
) -> List[str]:
    """Vocabulary terms occurring in ``text`` as case-insensitive substrings."""
    if not text:
        return []
    haystack = text.casefold()
    found: List[str] = []
    seen = set()
    for term in (*brands, *car_types):
        if term in seen:
            continue
        if term.casefold() in haystack:
            found.append(term)
            seen.add(term)
    return found


class KeywordExtractor:
    """Keyword extraction bound to a pair of vocabularies."""

    def __init__(
        self,
        brands: Iterable[str] = CAR_BRANDS,
        car_types: Iterable[str] = CAR_TYPES,
    ):
        self.brands = tuple(brands)
        self.car_types = tuple(car_types)

    def extract(self, text: str) -> List[str]:
        return extract_car_keywords(text, self.brands, self.car_types)
