from advisor.extractors.keywords import KeywordExtractor, extract_car_keywords


class TestExtractCarKeywords:
    def test_vocabulary_terms_only(self):
        vocabulary = dict(brands=["Toyota", "Honda"], car_types=["SUV", "Sedan"])
        assert extract_car_keywords("I recommend the Toyota RAV4, a great SUV", **vocabulary) == ["Toyota", "SUV"]

    def test_matching_is_case_insensitive(self):
        assert extract_car_keywords("a used honda sedan") == ["Honda", "Sedan"]

    def test_repeated_mentions_are_deduplicated(self):
        assert extract_car_keywords("Toyota, toyota and TOYOTA") == ["Toyota"]

    def test_chinese_terms(self):
        assert extract_car_keywords("推荐丰田的越野车") == ["丰田", "越野车"]

    def test_empty_text(self):
        assert extract_car_keywords("") == []

    def test_deterministic(self):
        text = "Compare the Mazda CX-5 crossover with a Subaru wagon"
        assert extract_car_keywords(text) == extract_car_keywords(text)


class TestKeywordExtractor:
    def test_custom_vocabulary(self):
        extractor = KeywordExtractor(brands=["Rivian"], car_types=["Pickup"])
        assert extractor.extract("The Rivian R1T pickup") == ["Rivian", "Pickup"]
