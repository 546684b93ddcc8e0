"""Tests for bundled.resources.constants — build-once values."""

from __future__ import annotations

from bundled.resources.constants import constant, is_cached, reset_constants


class TestConstant:
    def test_factory_runs_once(self) -> None:
        calls = []

        @constant("answer")
        def answer() -> int:
            calls.append(1)
            return 42

        assert answer() == 42
        assert answer() == 42
        assert len(calls) == 1

    def test_same_object_returned(self) -> None:
        @constant("box")
        def box() -> list[int]:
            return []

        assert box() is box()

    def test_wraps_factory(self) -> None:
        @constant("named")
        def named() -> str:
            """Docs."""
            return "x"

        assert named.__name__ == "named"
        assert named.__doc__ == "Docs."
        assert named.constant_key == "named"  # type: ignore[attr-defined]

    def test_reset_all(self) -> None:
        counter = iter(range(10))

        @constant("counter")
        def value() -> int:
            return next(counter)

        assert value() == 0
        reset_constants()
        assert not is_cached("counter")
        assert value() == 1

    def test_reset_one_key(self) -> None:
        @constant("a")
        def a() -> object:
            return object()

        @constant("b")
        def b() -> object:
            return object()

        first_a, first_b = a(), b()
        reset_constants("a")
        assert a() is not first_a
        assert b() is first_b

    def test_nested_constants(self) -> None:
        @constant("inner")
        def inner() -> int:
            return 1

        @constant("outer")
        def outer() -> int:
            return inner() + 1

        assert outer() == 2
