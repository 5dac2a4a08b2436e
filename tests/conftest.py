from __future__ import annotations

import bz2
import gzip
import lzma

import pytest
import zstandard as zstd


def make_game(
    movetext: str,
    white: str = "P1",
    black: str = "P2",
    result: str = "*",
    time_control: str | None = "300+0",
    **extra: str,
) -> str:
    headers = {
        "Event": "Rated Blitz game",
        "Site": f"https://lichess.org/{white}{black}",
        "White": white,
        "Black": black,
        "Result": result,
    }
    if time_control is not None:
        headers["TimeControl"] = time_control
    headers.update(extra)
    tags = "".join(f'[{key} "{value}"]\n' for key, value in headers.items())
    return f"{tags}\n{movetext}\n\n"


WORKED_MOVETEXT = (
    "1. e4 { [%clk 0:05:00] } 1... e5 { [%clk 0:04:58] } "
    "2. Nf3 { [%clk 0:04:54] } 2... Nc6 { [%clk 0:04:50] } *"
)

COMPRESSORS = {
    "zstd": lambda data: zstd.ZstdCompressor().compress(data),
    "gzip": gzip.compress,
    "bzip2": bz2.compress,
    "xz": lzma.compress,
}


@pytest.fixture
def worked_game() -> str:
    return make_game(WORKED_MOVETEXT)


@pytest.fixture
def archive(tmp_path):
    """Write `text` to a file, optionally compressed, and return its path."""

    def write(text: str, codec: str | None = None, name: str = "games.pgn"):
        data = text.encode("utf-8")
        if codec is not None:
            data = COMPRESSORS[codec](data)
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return write
