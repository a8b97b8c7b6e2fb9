"""Batch buffer — ordered pending messages, drained by swapping in a new list."""


class BatchBuffer:
    """Holds messages until a flush drains them.

    Draining swaps the backing list for a fresh empty one, so a message
    appended while a flush is in progress lands in exactly one generation:
    the batch being dispatched or the next one.
    """

    def __init__(self, max_messages: int):
        self._max_messages = max_messages
        self._messages: list[str] = []

    def append(self, message: str) -> bool:
        """Append a message. Returns True once the size threshold is reached."""
        self._messages.append(message)
        return len(self._messages) >= self._max_messages

    def drain(self) -> list[str]:
        """Return every pending message in submission order and start a new
        generation."""
        batch = self._messages
        self._messages = []
        return batch

    def __len__(self) -> int:
        return len(self._messages)
