"""Gzip compression of serialized batches, run off the event loop."""

import asyncio
import gzip

CONTENT_ENCODING = "gzip"


def compress_payload(data: bytes, level: int = 6) -> bytes:
    """Compress a serialized batch with gzip."""
    return gzip.compress(data, compresslevel=level)


def decompress_payload(data: bytes) -> bytes:
    """Reverse of *compress_payload*."""
    return gzip.decompress(data)


def is_gzip(data: bytes) -> bool:
    """Gzip streams start with the magic bytes 0x1f 0x8b."""
    return len(data) >= 2 and data[0] == 0x1F and data[1] == 0x8B


async def compress_async(data: bytes, loop: asyncio.AbstractEventLoop | None = None) -> bytes:
    """Compress in the loop's default executor so ingestion is never held up
    by compression of a large batch."""
    loop = loop or asyncio.get_running_loop()
    return await loop.run_in_executor(None, compress_payload, data)
