from advisor.extractors.structured_reply import clean_model_text, parse_structured_reply

BLOCK = (
    '{"summary": {"en": "Compact SUVs", "zh": "紧凑型SUV"},'
    ' "recommendations": [{"car_make": "Honda", "car_model": "CR-V", "match_score": 1.7,'
    ' "reasoning": "Roomy"}, {"car_model": "no make"}],'
    ' "next_steps": [{"title": {"en": "Compare trims"}, "priority": "urgent", "action_type": "call"},'
    ' {"description": "missing title"}]}'
)


class TestParseStructuredReply:
    def test_fenced_block_is_removed_from_display_text(self):
        parsed = parse_structured_reply(f"Look at the CR-V.\n```json\n{BLOCK}\n```")

        assert parsed.display_text == "Look at the CR-V."
        assert parsed.summary.en == "Compact SUVs"
        assert parsed.summary.get("zh") == "紧凑型SUV"
        assert parsed.has_structure

    def test_fields_are_validated(self):
        parsed = parse_structured_reply(f"Text\n```json\n{BLOCK}\n```")

        assert len(parsed.recommendations) == 1
        recommendation = parsed.recommendations[0]
        assert recommendation.match_score == 1.0
        assert recommendation.reasoning.zh == "Roomy"
        assert recommendation.matches("honda", "cr-v")
        assert len(parsed.next_steps) == 1
        step = parsed.next_steps[0]
        assert (step.priority, step.action_type) == ("medium", "research")
        assert step.title.zh == "Compare trims"

    def test_trailing_unfenced_object(self):
        parsed = parse_structured_reply('Try a Mazda. {"summary": "Mazda it is"}')

        assert parsed.display_text == "Try a Mazda."
        assert parsed.summary.en == "Mazda it is"

    def test_malformed_block_leaves_text_intact(self):
        text = "Here is my advice.\n```json\n{not json}\n```"
        parsed = parse_structured_reply(text)

        assert not parsed.has_structure
        assert "Here is my advice." in parsed.display_text

    def test_unrelated_braces_are_not_treated_as_structure(self):
        parsed = parse_structured_reply('Settings look like {"color": "red"}')

        assert not parsed.has_structure
        assert parsed.display_text == 'Settings look like {"color": "red"}'

    def test_reply_made_only_of_a_block(self):
        parsed = parse_structured_reply(f"```json\n{BLOCK}\n```")

        assert parsed.display_text == ""
        assert parsed.summary.en == "Compact SUVs"

    def test_empty_reply(self):
        assert parse_structured_reply("").display_text == ""


def test_clean_model_text_strips_outer_fence():
    assert clean_model_text("```\nplain answer\n```") == "plain answer"
