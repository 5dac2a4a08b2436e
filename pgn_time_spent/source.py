"""
Open a PGN archive as a forward-only text stream.

Compression is detected from the magic bytes at the head of the file, not
from the extension, so `games.pgn`, `games.pgn.zst` or a renamed dump all
work the same way:

    with open_archive("lichess_db_standard_rated_2025-09.pgn.zst") as text:
        for line in text:
            ...
"""

from __future__ import annotations

import bz2
import io
import logging
import lzma
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, TextIO

import zstandard as zstd

from .errors import DecompressionError, IoError

CHUNK_SIZE = 1 << 16  # raw bytes handed to the decompressor per read

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Codec:
    name: str
    magic: bytes
    factory: Callable[[], object]  # returns a fresh decompressobj-like object
    errors: tuple[type[BaseException], ...]


CODECS = (
    Codec("zstd", b"\x28\xb5\x2f\xfd", lambda: zstd.ZstdDecompressor().decompressobj(), (zstd.ZstdError,)),
    Codec("gzip", b"\x1f\x8b", lambda: zlib.decompressobj(wbits=zlib.MAX_WBITS | 16), (zlib.error,)),
    Codec("bzip2", b"BZh", bz2.BZ2Decompressor, (OSError, ValueError)),
    Codec("xz", b"\xfd7zXZ\x00", lzma.LZMADecompressor, (lzma.LZMAError,)),
)


def detect_compression(fh: io.BufferedReader) -> Codec | None:
    """Return the codec whose signature starts the file, without consuming it."""
    head = fh.peek(8)[:8]
    for codec in CODECS:
        if head.startswith(codec.magic):
            return codec
    return None


class DecompressingReader(io.RawIOBase):
    """
    Raw byte reader that decodes one or more concatenated frames/members.

    Corruption surfaces on the read that reaches the bad block. A stream that
    ends while a frame is still open is reported as truncated.
    """

    def __init__(self, raw: io.BufferedReader, codec: Codec) -> None:
        super().__init__()
        self._raw = raw
        self._codec = codec
        self._decomp = codec.factory()
        self._fed = False
        self._pending = b""
        self._offset = 0
        self._exhausted = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while self._offset >= len(self._pending) and not self._exhausted:
            self._fill()
        n = min(len(b), len(self._pending) - self._offset)
        b[:n] = self._pending[self._offset:self._offset + n]
        self._offset += n
        return n

    def _fill(self) -> None:
        try:
            chunk = self._raw.read(CHUNK_SIZE)
        except OSError as exc:
            raise IoError("source", f"read failed: {exc}") from exc

        if not chunk:
            if self._fed and not self._decomp.eof:
                raise DecompressionError(f"{self._codec.name} stream is truncated")
            self._exhausted = True
            return

        out = []
        data = chunk
        while data:
            if self._decomp.eof:
                # next frame or member
                self._decomp = self._codec.factory()
            try:
                out.append(self._decomp.decompress(data))
            except self._codec.errors + (EOFError,) as exc:
                raise DecompressionError(f"corrupt {self._codec.name} stream: {exc}") from exc
            self._fed = True
            data = self._decomp.unused_data if self._decomp.eof else b""
        self._pending = b"".join(out)
        self._offset = 0

    def close(self) -> None:
        if not self.closed:
            self._raw.close()
            self._decomp = None
            self._pending = b""
        super().close()


@contextmanager
def open_archive(path: str | Path) -> Iterator[TextIO]:
    """Yield the archive at `path` as decoded text; closes everything on exit."""
    path = Path(path)
    try:
        fh = path.open("rb")
    except OSError as exc:
        raise IoError("source", f"cannot open {path}: {exc}") from exc

    with fh:
        codec = detect_compression(fh)
        if codec is None:
            logger.info("Reading %s (uncompressed)", path)
            binary = fh
        else:
            logger.info("Reading %s (%s)", path, codec.name)
            binary = io.BufferedReader(DecompressingReader(fh, codec), buffer_size=CHUNK_SIZE)

        with io.TextIOWrapper(binary, encoding="utf-8", errors="replace", newline="\n") as text:
            yield text
