import pytest

from advisor.history.window import DEFAULT_HISTORY_WINDOW, window_messages
from api.shared.exceptions import ValidationError


class TestWindowMessages:
    def test_returns_most_recent_suffix_in_order(self):
        assert window_messages(list(range(10)), 3) == [7, 8, 9]

    def test_shorter_history_is_returned_whole(self):
        assert window_messages(["a", "b"], 5) == ["a", "b"]

    def test_zero_limit_gives_empty_window(self):
        assert window_messages(["a", "b"], 0) == []

    def test_negative_limit_is_rejected(self):
        with pytest.raises(ValidationError):
            window_messages(["a"], -1)

    def test_default_limit(self):
        messages = list(range(DEFAULT_HISTORY_WINDOW + 5))
        assert window_messages(messages) == messages[5:]

    def test_input_is_not_mutated(self):
        messages = [1, 2, 3]
        window_messages(messages, 1)
        assert messages == [1, 2, 3]
