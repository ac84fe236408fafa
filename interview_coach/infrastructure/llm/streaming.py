"""
Incremental parser for server-sent-event chat completion streams.
"""
import json
import codecs
import logging
from typing import Iterable, Iterator, List, Optional

from ...errors import StreamParseError

logger = logging.getLogger("llm_stream")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def parse_frame(line: str) -> Optional[str]:
    """
    Extract the content delta from one stream line.

    Returns None for comments, blank lines, non-data lines, the [DONE]
    sentinel and frames without content.

    Raises:
        StreamParseError: If a data line carries malformed JSON
    """
    if line.startswith(":") or not line.strip():
        return None
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return None

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StreamParseError(f"Malformed frame: {payload[:80]!r}") from e

    try:
        content = parsed["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) and content else None


class DeltaStreamParser:
    """
    Turns raw byte chunks into content fragments.

    Lines are buffered across chunks, and UTF-8 sequences split between chunks
    are decoded once complete.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.text = ""
        self.skipped_frames = 0

    def feed(self, chunk: bytes) -> List[str]:
        """Consume a chunk and return the content fragments it completed."""
        self._buffer += self._decoder.decode(chunk)
        fragments = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            fragment = self._parse_line(line.rstrip("\r"))
            if fragment:
                fragments.append(fragment)
        return fragments

    def close(self) -> List[str]:
        """Flush a final line that arrived without a trailing newline."""
        self._buffer += self._decoder.decode(b"", final=True)
        line, self._buffer = self._buffer, ""
        fragment = self._parse_line(line.rstrip("\r"))
        return [fragment] if fragment else []

    def _parse_line(self, line: str) -> Optional[str]:
        try:
            fragment = parse_frame(line)
        except StreamParseError as e:
            # A chunk boundary can cut a frame; the stream carries on without it
            self.skipped_frames += 1
            logger.debug("Skipping frame: %s", e)
            return None
        if fragment:
            self.text += fragment
        return fragment


def iter_deltas(chunks: Iterable[bytes]) -> Iterator[str]:
    """Yield content fragments from an iterable of raw chunks."""
    parser = DeltaStreamParser()
    for chunk in chunks:
        if chunk:
            yield from parser.feed(chunk)
    yield from parser.close()
