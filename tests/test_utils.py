"""Tests for test-file discovery helpers and logging setup."""

import logging

from rich.logging import RichHandler

from testmend.utils import LOGGER_NAME, find_source_file, is_test_file, setup_logging


def test_is_test_file():
    assert is_test_file("src/math.test.ts")
    assert is_test_file("src/Button.spec.tsx")
    assert is_test_file("lib/util.test.mjs")
    assert is_test_file("src/__tests__/math.ts")
    assert not is_test_file("src/math.ts")
    assert not is_test_file("src/math.test.py")
    assert not is_test_file("README.md")


def test_find_source_next_to_test(tmp_path):
    (tmp_path / "math.ts").write_text("")
    test_file = tmp_path / "math.test.ts"
    test_file.write_text("")

    assert find_source_file(test_file) == tmp_path / "math.ts"


def test_find_source_for_tests_directory(tmp_path):
    (tmp_path / "Button.tsx").write_text("")
    tests_dir = tmp_path / "__tests__"
    tests_dir.mkdir()
    test_file = tests_dir / "Button.spec.tsx"
    test_file.write_text("")

    assert find_source_file(test_file) == tmp_path / "Button.tsx"


def test_find_source_missing(tmp_path):
    test_file = tmp_path / "orphan.test.js"
    test_file.write_text("")

    assert find_source_file(test_file) is None


def test_setup_logging_adds_one_handler():
    first = setup_logging(debug=True)
    second = setup_logging()

    assert first is second is logging.getLogger(LOGGER_NAME)
    assert sum(isinstance(h, RichHandler) for h in second.handlers) == 1
    assert second.level == logging.INFO
