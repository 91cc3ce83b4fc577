# tests/unit/test_errors_classify.py
from __future__ import annotations

import binascii

import pytest
import requests
from PIL import UnidentifiedImageError

from imgcache.core.fetch.errors import (
    DecodeError,
    ImageCacheError,
    NetworkError,
    ResolutionError,
    classify_resolver_error,
    resolver_error_guard,
)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (requests.ConnectionError("down"), NetworkError),
        (requests.Timeout("slow"), NetworkError),
        (TimeoutError("slow"), NetworkError),
        (ConnectionResetError("reset"), NetworkError),
        (UnidentifiedImageError("what is this"), DecodeError),
        (binascii.Error("bad padding"), DecodeError),
        (KeyError("x"), ImageCacheError),
    ],
)
def test_classify(exc: Exception, expected: type) -> None:
    out = classify_resolver_error(exc)
    assert type(out) is expected
    assert type(exc).__name__ in str(out)


def test_typed_errors_pass_through() -> None:
    err = ResolutionError("no host")
    assert classify_resolver_error(err) is err


def test_guard_reraises_typed_and_wraps_unexpected() -> None:
    with pytest.raises(ResolutionError):
        with resolver_error_guard():
            raise ResolutionError("no host")

    with pytest.raises(NetworkError) as ei:
        with resolver_error_guard():
            raise requests.ConnectionError("down")
    assert isinstance(ei.value.__cause__, requests.ConnectionError)
