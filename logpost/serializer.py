"""Batch serializer — newline-terminated UTF-8 text, one message per line."""


def serialize_batch(messages: list[str]) -> bytes:
    """Join messages into the request body.

    Every message is followed by a newline, including the last one. Embedded
    newlines are not escaped. Characters UTF-8 cannot encode, such as lone
    surrogates, become "?".
    """
    return "".join(message + "\n" for message in messages).encode("utf-8", errors="replace")


def deserialize_batch(data: bytes) -> list[str]:
    """Split a request body produced by *serialize_batch* back into lines."""
    text = data.decode("utf-8", errors="replace")
    if not text:
        return []
    return text[:-1].split("\n") if text.endswith("\n") else text.split("\n")
