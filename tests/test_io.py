import pytest

from interpreter import InputExhaustedError, InvalidInputError, IOChannel, NoOutputAvailable


@pytest.mark.parametrize("bad", ["", "ab", 5, None, b"a"])
def test_give_input_rejects_anything_but_one_character(bad) -> None:
    channel = IOChannel()

    with pytest.raises(InvalidInputError):
        channel.give_input(bad)
    assert channel.pending_input == ()


def test_input_is_consumed_in_order() -> None:
    channel = IOChannel()
    channel.give_input("a")
    channel.give_input_text("bc")

    assert channel.pending_input == ("a", "b", "c")
    assert channel.read_input() == "a"
    assert channel.pending_input == ("b", "c")


def test_empty_input_is_retryable_until_closed() -> None:
    channel = IOChannel()

    with pytest.raises(InputExhaustedError):
        channel.read_input()

    channel.close_input()
    assert channel.read_input() == ""
    with pytest.raises(InvalidInputError):
        channel.give_input("x")


def test_read_output_returns_and_clears() -> None:
    channel = IOChannel()

    with pytest.raises(NoOutputAvailable):
        channel.read_output()

    channel.write("4")
    channel.write("2")
    assert channel.read_output() == "42"
    with pytest.raises(NoOutputAvailable):
        channel.read_output()
