import numpy as np
import pytest

from codebox import PAD, Grid, split_rows


def test_ragged_rows_pad_with_spaces() -> None:
    grid = Grid("abc\nd\nef")

    assert (grid.width, grid.height) == (3, 3)
    assert grid.char_at(0, 1) == "d"
    assert grid.char_at(2, 1) == " "
    assert grid.char_at(1, 2) == "f"


def test_char_at_never_fails_outside_the_table() -> None:
    grid = Grid("ab")

    assert grid.char_at(-1, 0) == " "
    assert grid.char_at(5, 0) == " "
    assert grid.char_at(0, 9) == " "


def test_code_at_distinguishes_padding_from_explicit_spaces() -> None:
    grid = Grid("a b\nc")

    assert grid.code_at(1, 0) == ord(" ")
    assert grid.code_at(2, 1) == 0
    assert grid.code_at(10, 10) == 0


def test_empty_source_is_a_single_blank_cell() -> None:
    grid = Grid("")

    assert (grid.width, grid.height) == (1, 1)
    assert grid.char_at(0, 0) == " "


@pytest.mark.parametrize(
    "text, rows",
    [
        ("ab\n", ["ab"]),
        ("ab\r\ncd", ["ab", "cd"]),
        ("ab\rcd\n\n", ["ab", "cd", ""]),
    ],
)
def test_split_rows_handles_line_terminators(text: str, rows: list) -> None:
    assert split_rows(text) == rows


def test_grid_cells_are_read_only() -> None:
    grid = Grid("12")

    with pytest.raises(ValueError):
        grid.cells[0, 0] = ord("3")
    assert grid.cells.dtype == np.uint32


def test_astral_character_occupies_one_cell() -> None:
    grid = Grid("\U0001F41F;")

    assert grid.width == 2
    assert grid.char_at(0, 0) == "\U0001F41F"
    assert grid.char_at(1, 0) == ";"


def test_row_returns_stored_text() -> None:
    grid = Grid("abc\nd")

    assert grid.row(1) == "d"
    assert grid.row(7) == ""


def test_literal_nul_is_not_padding() -> None:
    grid = Grid("\x00a\nb")

    assert grid.char_at(0, 0) == "\x00"
    assert grid.code_at(0, 0) == 0
    assert grid.char_at(1, 1) == " "
    assert grid.code_at(1, 1) == 0
    assert grid.cells[1, 1] == PAD
