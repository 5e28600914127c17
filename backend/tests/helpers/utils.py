"""Small assertion helpers shared by test modules."""

from __future__ import annotations

from contextlib import contextmanager


@contextmanager
def not_raises(exception: type[BaseException]):
    """Fail the test, rather than error it, if ``exception`` escapes the block."""
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"unexpected {type(exc).__name__}: {exc}") from exc
