"""Partitioning of a chat stream into fixed-size time windows."""

from typing import Iterable

from ...models import ChatMessage, TimeWindow

DEFAULT_WINDOW_SIZE_MS = 30_000


def sort_messages(messages: Iterable[ChatMessage]) -> list[ChatMessage]:
    """Order messages by timestamp, keeping arrival order for equal timestamps."""
    return sorted(messages, key=lambda message: message.timestamp)


def create_windows(
    messages: Iterable[ChatMessage], window_size_ms: int = DEFAULT_WINDOW_SIZE_MS
) -> list[TimeWindow]:
    """Split messages into non-overlapping windows of ``window_size_ms``.

    Windows are anchored at the earliest timestamp and advance in fixed
    steps through the latest one. Only windows holding at least one message
    are returned, in chronological order.

    Args:
        messages: Chat messages in any order
        window_size_ms: Window length in milliseconds

    Returns:
        Non-empty windows; every message appears in exactly one of them

    Raises:
        ValueError: If ``window_size_ms`` is not positive
    """
    if window_size_ms <= 0:
        raise ValueError(f"Window size must be positive, got {window_size_ms}")

    ordered = sort_messages(messages)
    if not ordered:
        return []

    origin = ordered[0].timestamp
    windows: dict[int, TimeWindow] = {}

    for message in ordered:
        index = (message.timestamp - origin) // window_size_ms
        window = windows.get(index)
        if window is None:
            start = origin + index * window_size_ms
            window = TimeWindow(start=start, end=start + window_size_ms)
            windows[index] = window
        window.messages.append(message)

    return [windows[index] for index in sorted(windows)]
