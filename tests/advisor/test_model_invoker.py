import pytest
from langchain_core.messages import AIMessage, AIMessageChunk

from advisor.llm.events import DoneEvent, ErrorEvent, FragmentEvent
from advisor.llm.invoker import ChatModelInvoker, ModelInvoker
from advisor.llm.streaming import SimulatedStreamInvoker, split_fragments
from advisor.prompts.chat.system_prompt import AssembledPrompt
from api.shared.exceptions import ModelError

PROMPT = AssembledPrompt(system="system", turns=(("user", "hello"),), language="en")


class FakeChatModel:
    """Stands in for a LangChain chat model: ``ainvoke`` and ``astream`` only."""

    def __init__(self, reply="", chunks=(), error=None, fail_after=None):
        self.reply = reply
        self.chunks = list(chunks)
        self.error = error
        self.fail_after = fail_after
        self.received = []

    async def ainvoke(self, messages):
        self.received.append(messages)
        if self.error:
            raise self.error
        return AIMessage(content=self.reply)

    async def astream(self, messages):
        self.received.append(messages)
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise self.error
            yield AIMessageChunk(content=chunk)


async def collect(stream):
    return [event async for event in stream]


class TestChatModelInvoker:
    async def test_generate_returns_stripped_text(self):
        llm = FakeChatModel(reply="  A Honda Civic.  ")
        invoker = ChatModelInvoker(llm, "gpt-test")

        assert await invoker.generate(PROMPT, "en") == "A Honda Civic."
        assert [m.type for m in llm.received[0]] == ["system", "human"]
        assert isinstance(invoker, ModelInvoker)

    async def test_generate_failure_is_model_error(self):
        invoker = ChatModelInvoker(FakeChatModel(error=TimeoutError("timed out")), "gpt-test")

        with pytest.raises(ModelError) as exc_info:
            await invoker.generate(PROMPT, "en")

        assert exc_info.value.model == "gpt-test"
        assert exc_info.value.reason == "timed out"

    async def test_empty_reply_is_model_error(self):
        invoker = ChatModelInvoker(FakeChatModel(reply="   "), "gpt-test")

        with pytest.raises(ModelError):
            await invoker.generate(PROMPT, "en")

    async def test_native_stream_concatenates(self):
        invoker = ChatModelInvoker(FakeChatModel(chunks=["The ", "", "Civic"]), "gpt-test")

        events = await collect(invoker.generate_stream(PROMPT, "en"))

        assert events == [
            FragmentEvent("The "),
            FragmentEvent("Civic"),
            DoneEvent(full_text="The Civic", fragment_count=2),
        ]

    async def test_native_stream_error_terminates(self):
        llm = FakeChatModel(chunks=["The ", "Civic"], error=ConnectionError("reset"), fail_after=1)
        invoker = ChatModelInvoker(llm, "gpt-test")

        events = await collect(invoker.generate_stream(PROMPT, "en"))

        assert events[0] == FragmentEvent("The ")
        assert isinstance(events[-1], ErrorEvent)
        assert not any(isinstance(event, DoneEvent) for event in events)


class TestSimulatedStream:
    async def test_fragments_concatenate_to_reply(self):
        text = "Consider  the Toyota Corolla for commuting."
        invoker = SimulatedStreamInvoker(ChatModelInvoker(FakeChatModel(reply=text), "gpt-test"), chunk_delay=0)

        events = await collect(invoker.generate_stream(PROMPT, "en"))

        fragments = [event.text for event in events if isinstance(event, FragmentEvent)]
        assert "".join(fragments) == text
        assert events[-1] == DoneEvent(full_text=text, fragment_count=len(fragments))
        assert invoker.model_name == "gpt-test"

    async def test_structured_block_is_not_replayed(self):
        text = 'Try the Toyota RAV4.\n```json\n{"summary": {"en": "s", "zh": "s"}}\n```'
        invoker = SimulatedStreamInvoker(ChatModelInvoker(FakeChatModel(reply=text), "gpt-test"), chunk_delay=0)

        events = await collect(invoker.generate_stream(PROMPT, "en"))

        fragments = [event.text for event in events if isinstance(event, FragmentEvent)]
        assert "".join(fragments) == "Try the Toyota RAV4."
        assert events[-1].full_text == text

    async def test_failure_becomes_single_error_event(self):
        inner = ChatModelInvoker(FakeChatModel(error=RuntimeError("quota")), "gpt-test")

        events = await collect(SimulatedStreamInvoker(inner, chunk_delay=0).generate_stream(PROMPT, "en"))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].error.reason == "quota"


class TestSplitFragments:
    @pytest.mark.parametrize("text", ["one", "one two", "trailing space ", "丰田卡罗拉很好"])
    def test_concatenation_is_lossless(self, text):
        assert "".join(split_fragments(text)) == text

    def test_no_empty_fragments(self):
        assert "" not in split_fragments("a  b ")
