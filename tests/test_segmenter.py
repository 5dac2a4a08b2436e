import io

import pytest

from conftest import WORKED_MOVETEXT, make_game
from pgn_time_spent.errors import IoError
from pgn_time_spent.segmenter import PipelineStats, iter_games


def split(text):
    stats = PipelineStats()
    return list(iter_games(io.StringIO(text), stats)), stats


def test_splits_consecutive_games(worked_game):
    second = make_game("1. d4 { [%clk 0:01:00] } 1-0", white="A", black="B", result="1-0")
    games, stats = split(worked_game + second)

    assert [g.headers["White"] for g in games] == ["P1", "A"]
    assert games[0].movetext == WORKED_MOVETEXT
    assert games[1].headers["Result"] == "1-0"
    assert stats.games_seen == 2
    assert stats.units_dropped == 0


def test_headers_keep_order_and_values(worked_game):
    games, _ = split(worked_game)

    assert list(games[0].headers.items()) == [
        ("Event", "Rated Blitz game"),
        ("Site", "https://lichess.org/P1P2"),
        ("White", "P1"),
        ("Black", "P2"),
        ("Result", "*"),
        ("TimeControl", "300+0"),
    ]
    assert games[0].site == "https://lichess.org/P1P2"


def test_blank_lines_inside_header_block_and_trailing_whitespace():
    text = '[White "A"]   \n\n\n[Black "B"]\n\n1. e4 1-0   \n\n'
    games, _ = split(text)

    assert len(games) == 1
    assert dict(games[0].headers) == {"White": "A", "Black": "B"}
    assert games[0].movetext == "1. e4 1-0"


def test_multiline_movetext_joined():
    games, _ = split('[White "A"]\n\n1. e4 e5\n2. Nf3 Nc6 *\n\n')

    assert games[0].movetext == "1. e4 e5\n2. Nf3 Nc6 *"


def test_game_without_headers():
    games, _ = split("1. e4 e5 *\n\n")

    assert len(games) == 1
    assert len(games[0].headers) == 0


def test_next_header_closes_movetext_without_blank_line():
    games, _ = split('[White "A"]\n1. e4 *\n[White "B"]\n1. d4 *\n')

    assert [g.headers["White"] for g in games] == ["A", "B"]


def test_trailing_header_block_is_dropped(worked_game):
    games, stats = split(worked_game + '[Event "cut"]\n[White "X"]\n')

    assert len(games) == 1
    assert games[0].movetext == WORKED_MOVETEXT
    assert stats.games_seen == 1
    assert stats.units_dropped == 1


def test_trailing_cut_off_movetext_is_dropped(worked_game):
    games, stats = split(worked_game + '[White "X"]\n\n1. e4 { [%clk 0:05:00] } 1... e5 { [%clk')

    assert len(games) == 1
    assert stats.units_dropped == 1


def test_final_game_without_blank_line_is_kept():
    games, stats = split('[White "A"]\n\n1. e4 { [%clk 0:05:00] } 1-0')

    assert len(games) == 1
    assert stats.units_dropped == 0


def test_is_lazy(worked_game):
    stats = PipelineStats()
    games = iter_games(io.StringIO(worked_game * 3), stats)

    next(games)
    assert stats.games_seen == 1


def test_read_failure_becomes_io_error():
    def broken():
        yield '[White "A"]\n'
        raise OSError("disk gone")

    with pytest.raises(IoError) as err:
        list(iter_games(broken(), PipelineStats()))
    assert err.value.stage == "source"


def test_header_block_without_movetext_does_not_leak_into_next_game(worked_game):
    partial = '[Event "partial"]\n[White "X"]\n[TimeControl "60+0"]\n[Termination "Time forfeit"]\n\n'
    following = make_game("1. d4 { [%clk 0:01:00] } 1-0", white="A", black="B", result="1-0", time_control=None)
    games, stats = split(worked_game + partial + following)

    assert [g.headers["White"] for g in games] == ["P1", "A"]
    assert "TimeControl" not in games[1].headers
    assert "Termination" not in games[1].headers
    assert games[1].headers["Event"] == "Rated Blitz game"
    assert stats.games_seen == 2
    assert stats.units_dropped == 1


def test_blank_line_inside_comment_stays_in_movetext():
    text = '[White "A"]\n\n1. e4 { long\n\nnote [%clk 0:00:50] } 1... e5 1-0\n\n'
    games, stats = split(text)

    assert len(games) == 1
    assert games[0].movetext == "1. e4 { long\n\nnote [%clk 0:00:50] } 1... e5 1-0"
    assert stats.units_dropped == 0


def test_comment_open_at_end_of_stream_is_dropped(worked_game):
    games, stats = split(worked_game + '[White "X"]\n\n1. e4 { never closed 1-0\n')

    assert len(games) == 1
    assert stats.units_dropped == 1


def test_escaped_tag_values():
    games, _ = split('[White "a \\"b\\" \\\\c"]\n\n1. e4 *\n\n')

    assert games[0].headers["White"] == 'a "b" \\c'
