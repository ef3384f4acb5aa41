"""
fixer_backends.py - Interchangeable autocorrect implementations.

A backend is any importable callable with the autocorrect(text) -> text
contract: the bundled engine, a compiled extension module, a pinned older
release. Backends are named by import path, "module" or "module:attr".
compare_backends() runs two of them over the same inputs and reports every
input on which their output differs.
"""

import logging
from importlib import import_module
from typing import Callable, Iterable, List, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_BACKEND   = "json_fixer"
DEFAULT_ATTRIBUTE = "autocorrect"

Backend = Callable[[str], str]


class BackendUnavailable(ImportError):
    """The backend path does not resolve to an importable callable."""


class Mismatch(NamedTuple):
    text: str
    expected: str
    actual: str


def load_backend(name: str = DEFAULT_BACKEND) -> Backend:
    """
    Resolve "module[:attr]" to a callable. attr defaults to autocorrect.
    """
    module_name, _, attr = name.partition(":")
    attr = attr or DEFAULT_ATTRIBUTE
    try:
        module = import_module(module_name)
    except (ImportError, ValueError) as exc:
        raise BackendUnavailable(f"cannot import backend {module_name!r}: {exc}") from exc

    fn = getattr(module, attr, None)
    if not callable(fn):
        raise BackendUnavailable(f"backend {module_name!r} has no callable {attr!r}")
    logger.debug("loaded backend %s:%s", module_name, attr)
    return fn


def compare_backends(reference: Backend, candidate: Backend, inputs: Iterable[str]) -> List[Mismatch]:
    """
    Differential run: one Mismatch per input where the outputs differ.

    The contract is total, so a candidate that raises is recorded as a
    mismatch with the exception repr as its output. Errors from the
    reference propagate.
    """
    mismatches: List[Mismatch] = []
    for text in inputs:
        expected = reference(text)
        try:
            actual = candidate(text)
        except Exception as exc:
            actual = repr(exc)
        if actual != expected:
            logger.debug("backend mismatch on %r: %r != %r", text, expected, actual)
            mismatches.append(Mismatch(text, expected, actual))
    return mismatches


__all__ = [
    "DEFAULT_BACKEND",
    "Backend",
    "BackendUnavailable",
    "Mismatch",
    "compare_backends",
    "load_backend",
]
