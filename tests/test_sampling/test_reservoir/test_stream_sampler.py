"""
Purpose
-------
Unit tests for `sampling.reservoir.stream_sampler`.

Key behaviors
-------------
- CLI argument parsing with defaults and strategy validation.
- Line parsing for weighted input (`item<TAB>weight`).
- `sample_lines` feeds engines with or without weights and skips blank lines.
- `main` prints the drained sample and maps sampling failures to exit code 1.

Conventions
-----------
- `load_dotenv` is patched so tests never read a real `.env`.
- Input files live under pytest's `tmp_path`.

Downstream usage
----------------
- Run via `pytest -q tests/test_sampling`.
"""

import io
import pathlib

import pytest
from pytest import CaptureFixture
from pytest_mock import MockerFixture

from sampling.reservoir import stream_sampler
from sampling.reservoir.sampling_errors import InvalidWeightError
from tests.test_sampling.test_reservoir.reservoir_testing_utils import (
    DeterministicRNG,
    build_engine,
)


def test_extract_cli_args_defaults() -> None:
    assert stream_sampler.extract_cli_args(["prog", "5", "42"]) == (5, 42, "unit", "-", "INFO")


def test_extract_cli_args_full() -> None:
    argv = ["prog", "3", "7", "efraimidis", "input.tsv", "DEBUG"]
    assert stream_sampler.extract_cli_args(argv) == (3, 7, "efraimidis", "input.tsv", "DEBUG")


@pytest.mark.parametrize(
    "argv, error",
    [
        (["prog"], IndexError),
        (["prog", "three", "7"], ValueError),
        (["prog", "3", "7", "weighted"], ValueError),
    ],
)
def test_extract_cli_args_errors(argv: list[str], error: type[Exception]) -> None:
    with pytest.raises(error):
        stream_sampler.extract_cli_args(argv)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("alpha\t2.5", ("alpha", 2.5)),
        ("a b\tc\t3", ("a b\tc", 3.0)),
        ("\t1", ("", 1.0)),
    ],
)
def test_parse_weighted_line(line: str, expected: tuple[str, float]) -> None:
    assert stream_sampler.parse_weighted_line(line, 1) == expected


@pytest.mark.parametrize("line", ["alpha", "alpha\theavy"])
def test_parse_weighted_line_errors(line: str) -> None:
    with pytest.raises(InvalidWeightError, match="Line 4"):
        stream_sampler.parse_weighted_line(line, 4)


def test_sample_lines_unweighted_skips_blank_lines() -> None:
    engine, _ = build_engine(capacity=5, rng=DeterministicRNG([0.1, 0.2, 0.3]))
    lines = io.StringIO("a\n\n  \nb\r\nc\n")
    assert stream_sampler.sample_lines(engine, lines) == 3
    assert sorted(engine.drain()) == ["a", "b", "c"]
    assert engine.stream_size == 3


def test_sample_lines_weighted() -> None:
    """
    Weighted strategies split each line into item and weight.

    Returns
    -------
    None

    Notes
    -----
    - A-ES log keys: x = log(0.25) / 2 = -0.69, y = log(0.4) / 1 = -0.92,
      z = log(0.81) / 1 = -0.21; capacity 2 keeps x and z.
    """

    engine, _ = build_engine(
        capacity=2, rng=DeterministicRNG([0.25, 0.4, 0.81]), strategy="efraimidis"
    )
    lines = ["x\t2\n", "y\t1\n", "z\t1\n"]
    assert stream_sampler.sample_lines(engine, lines) == 3
    assert sorted(engine.drain()) == ["x", "z"]
    assert engine.total_weight == 4.0


def test_main_prints_sample(
    mocker: MockerFixture, capsys: CaptureFixture, tmp_path: pathlib.Path
) -> None:
    """
    With capacity above the stream length, every input line is printed.

    Parameters
    ----------
    mocker : MockerFixture
        Used to patch `load_dotenv`.
    capsys : CaptureFixture
        Captures STDOUT for the printed sample.
    tmp_path : pathlib.Path
        Location of the input file.

    Returns
    -------
    None
    """

    mock_load_dotenv = mocker.patch("sampling.reservoir.stream_sampler.load_dotenv")
    input_path = tmp_path / "items.txt"
    input_path.write_text("one\ntwo\nthree\n", encoding="utf-8")

    status = stream_sampler.main(["prog", "10", "1", "unit", str(input_path), "ERROR"])

    assert status == 0
    mock_load_dotenv.assert_called_once()
    printed = capsys.readouterr().out.splitlines()
    assert sorted(printed) == ["one", "three", "two"]


def test_main_is_reproducible(
    mocker: MockerFixture, capsys: CaptureFixture, tmp_path: pathlib.Path
) -> None:
    mocker.patch("sampling.reservoir.stream_sampler.load_dotenv")
    input_path = tmp_path / "items.txt"
    input_path.write_text("".join(f"item-{i}\n" for i in range(200)), encoding="utf-8")
    argv = ["prog", "5", "123", "unit", str(input_path), "ERROR"]

    stream_sampler.main(argv)
    first = capsys.readouterr().out
    stream_sampler.main(argv)
    second = capsys.readouterr().out

    assert first == second
    assert len(first.splitlines()) == 5


def test_main_returns_error_status_on_invalid_weight(
    mocker: MockerFixture, capsys: CaptureFixture, tmp_path: pathlib.Path
) -> None:
    """
    A malformed weight aborts sampling, logs an error, and prints no sample.

    Parameters
    ----------
    mocker : MockerFixture
        Used to patch `load_dotenv`.
    capsys : CaptureFixture
        Captures STDOUT and STDERR.
    tmp_path : pathlib.Path
        Location of the input file.

    Returns
    -------
    None
    """

    mocker.patch("sampling.reservoir.stream_sampler.load_dotenv")
    mocker.patch.dict("os.environ", {"RESERVOIR_LOG_FORMAT": "json", "RESERVOIR_LOG_DEST": "stderr"})
    input_path = tmp_path / "weighted.tsv"
    input_path.write_text("a\t1.0\nb\t-2\n", encoding="utf-8")

    status = stream_sampler.main(["prog", "3", "1", "efraimidis", str(input_path)])

    assert status == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "stream_sampling_failed" in captured.err
    assert "InvalidWeightError" in captured.err
