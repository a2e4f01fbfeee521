from datetime import datetime, timezone

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from advisor.pipeline.models import CurrentCar, MessageRecord, UserPreferences
from advisor.prompts.chat.system_prompt import assemble_prompt, build_system_prompt


def message(role, content):
    return MessageRecord(
        id=content,
        conversation_id="c1",
        role=role,
        content=content,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestSystemPrompt:
    def test_english_persona_and_directive_last(self):
        system = build_system_prompt(language="en")

        assert system.startswith("You are ReHui")
        assert system.endswith("Always reply in English unless the user explicitly asks for another language.")

    def test_chinese_prompt(self):
        system = build_system_prompt(language="zh")

        assert "睿慧" in system
        assert system.endswith("请始终使用简体中文回复，除非用户明确要求使用其他语言。")

    def test_preferences_and_current_car(self):
        system = build_system_prompt(
            language="en",
            preferences=UserPreferences(budget="30000", brand="Honda", features=["AWD"]),
            current_car=CurrentCar(id="x", name="CR-V", brand="Honda"),
        )

        assert 'User preferences: {"brand": "Honda", "budget": "30000", "features": ["AWD"]}' in system
        assert "Car the user is currently viewing: Honda CR-V" in system

    def test_empty_preferences_are_omitted(self):
        assert "User preferences" not in build_system_prompt(language="en", preferences=UserPreferences())


class TestAssemblePrompt:
    def test_turns_follow_history_order(self):
        history = [message("user", "hi"), message("assistant", "hello"), message("user", "SUV?")]

        prompt = assemble_prompt(language="en", history=history)

        assert prompt.turns == (("user", "hi"), ("assistant", "hello"), ("user", "SUV?"))
        assert [type(m) for m in prompt.to_messages()] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]

    def test_transcript_joins_system_and_turns(self):
        prompt = assemble_prompt(language="en", history=[message("user", "hi")])

        assert prompt.to_transcript() == f"{prompt.system}\n\nhi"

    def test_empty_history(self):
        prompt = assemble_prompt(language="zh", history=[])

        assert prompt.turns == ()
        assert prompt.language == "zh"
