import pytest

from advisor.extractors.structured_reply import StructuredRecommendation
from advisor.matchers.recommendation_matcher import RecommendationMatcher
from advisor.pipeline.models import BilingualText


class StaticCatalog:
    def __init__(self, cars=(), error=None):
        self.cars = list(cars)
        self.error = error
        self.requests = []

    async def search_cars(self, keywords, limit):
        self.requests.append((list(keywords), limit))
        if self.error:
            raise self.error
        return list(self.cars)


class TestMatch:
    async def test_results_are_capped_at_five(self, make_car):
        catalog = StaticCatalog([make_car("Toyota", f"Model {i}") for i in range(8)])

        cars = await RecommendationMatcher(catalog, limit=10).match(["Toyota"])

        assert len(cars) == 5
        assert catalog.requests == [(["Toyota"], 5)]

    async def test_no_keywords_skips_the_catalog(self):
        catalog = StaticCatalog()

        assert await RecommendationMatcher(catalog).match([]) == []
        assert catalog.requests == []

    async def test_catalog_failure_yields_empty(self):
        catalog = StaticCatalog(error=RuntimeError("connection reset"))

        assert await RecommendationMatcher(catalog).match(["SUV"]) == []


class TestScoring:
    def test_keyword_overlap(self, make_car):
        car = make_car("Toyota", "RAV4", "suv")

        assert RecommendationMatcher.score(car, ["Toyota", "SUV", "Honda"]) == 80
        assert RecommendationMatcher.score(car, ["Honda"]) == 40

    def test_score_never_exceeds_hundred(self, make_car):
        car = make_car("Toyota", "RAV4 Hybrid", "suv")

        assert RecommendationMatcher.score(car, ["Toyota", "RAV4", "Hybrid", "SUV"]) == 100

    def test_structured_score_wins(self, make_car):
        car = make_car("Honda", "CR-V")
        named = StructuredRecommendation("Honda", "CR-V", 0.73, BilingualText(en="Fits", zh="合适"))

        assert RecommendationMatcher.score(car, ["Honda"], [named]) == 73


class TestReasoning:
    def test_structured_reasoning(self, make_car):
        car = make_car("Honda", "CR-V")
        named = StructuredRecommendation("Honda", "", 0.5, BilingualText(en="Fits", zh="合适"))

        assert RecommendationMatcher.reasoning(car, ["Honda"], [named]).zh == "合适"

    def test_catalog_description(self, make_car):
        car = make_car("Mazda", "CX-5", description_en="Sporty compact SUV")

        reasoning = RecommendationMatcher.reasoning(car, ["Mazda"])

        assert reasoning.en == "Sporty compact SUV"
        assert reasoning.zh == "Sporty compact SUV"

    @pytest.mark.parametrize(
        "language, expected",
        [
            ("en", "Toyota RAV4 matches what was discussed: Toyota, SUV."),
            ("zh", "Toyota RAV4 符合对话中提到的条件：Toyota, SUV。"),
        ],
    )
    def test_template(self, make_car, language, expected):
        car = make_car("Toyota", "RAV4", "suv")

        assert RecommendationMatcher.reasoning(car, ["Toyota", "SUV"]).get(language) == expected
