"""Tests for chat stream windowing."""

import random

import pytest

from chatclips.domain.services.highlight_detection import create_windows
from chatclips.domain.services.highlight_detection.windowing import sort_messages
from tests.factories import ChatMessageFactory


class TestCreateWindows:
    """Test fixed-size partitioning of chat messages."""

    def test_empty_input_returns_no_windows(self):
        assert create_windows([]) == []

    @pytest.mark.parametrize("size", [0, -30_000])
    def test_rejects_non_positive_window_size(self, size):
        with pytest.raises(ValueError, match="Window size must be positive"):
            create_windows([ChatMessageFactory(timestamp=0)], size)

    def test_windows_are_anchored_at_first_message(self):
        messages = [ChatMessageFactory(timestamp=ts) for ts in (5_000, 20_000, 36_000)]

        windows = create_windows(messages, 30_000)

        assert [(w.start, w.end) for w in windows] == [
            (5_000, 35_000),
            (35_000, 65_000),
        ]
        assert [len(w.messages) for w in windows] == [2, 1]

    def test_end_is_exclusive(self):
        messages = [ChatMessageFactory(timestamp=ts) for ts in (0, 29_999, 30_000)]

        windows = create_windows(messages, 30_000)

        assert len(windows) == 2
        assert [m.timestamp for m in windows[0].messages] == [0, 29_999]
        assert [m.timestamp for m in windows[1].messages] == [30_000]

    def test_empty_windows_are_omitted(self):
        messages = [ChatMessageFactory(timestamp=ts) for ts in (0, 95_000)]

        windows = create_windows(messages, 30_000)

        assert [(w.start, w.end) for w in windows] == [(0, 30_000), (90_000, 120_000)]

    def test_unsorted_input_is_ordered(self):
        messages = [ChatMessageFactory(timestamp=ts) for ts in (40_000, 1_000, 10_000)]

        windows = create_windows(messages, 30_000)

        assert [m.timestamp for m in windows[0].messages] == [1_000, 10_000]
        assert windows[0].start == 1_000

    def test_every_message_lands_in_exactly_one_window(self):
        rng = random.Random(1234)
        messages = [
            ChatMessageFactory(timestamp=rng.randint(0, 600_000)) for _ in range(500)
        ]

        windows = create_windows(messages, 30_000)

        assert sum(len(w.messages) for w in windows) == len(messages)
        for window in windows:
            assert window.duration == 30_000
            for message in window.messages:
                assert window.start <= message.timestamp < window.end
        starts = [w.start for w in windows]
        assert starts == sorted(starts)
        assert len(set(starts)) == len(starts)


class TestSortMessages:
    """Test message ordering."""

    def test_equal_timestamps_keep_arrival_order(self):
        first = ChatMessageFactory(timestamp=1_000, sender="first")
        second = ChatMessageFactory(timestamp=1_000, sender="second")
        earlier = ChatMessageFactory(timestamp=500, sender="earlier")

        ordered = sort_messages([first, second, earlier])

        assert [m.sender for m in ordered] == ["earlier", "first", "second"]
