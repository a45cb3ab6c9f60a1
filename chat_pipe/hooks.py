"""Extension hook raised before a fragment is buffered.

The engine hands every registered hook the same PipeRequest, in registration
order. A hook may rewrite the fragment or cancel the request:

    def no_shouting(request: PipeRequest) -> None:
        request.fragment = request.fragment.lower()

    def one_line_only(request: PipeRequest) -> None:
        if request.previous is not None:
            request.cancelled = True

A cancelled request leaves the pending buffer exactly as it was and the raw
fragment is delivered as-is.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Protocol


class FragmentError(ValueError):
    """Raised when a hook leaves the request without a usable fragment."""


class PipeRequest:
    """Mutable, cancellable view of one fragment about to be buffered."""

    def __init__(self, user: Hashable, previous: str | None, fragment: str) -> None:
        if fragment is None:
            raise FragmentError("fragment cannot be None")
        self._user = user
        self._previous = previous
        self._fragment = fragment
        self.cancelled = False

    @property
    def user(self) -> Hashable:
        return self._user

    @property
    def previous(self) -> str | None:
        """Text already pending for this user, or None when starting a pipe."""
        return self._previous

    @property
    def fragment(self) -> str:
        return self._fragment

    @fragment.setter
    def fragment(self, value: str) -> None:
        if value is None:
            raise FragmentError("fragment cannot be None")
        self._fragment = value

    def __repr__(self) -> str:
        return (f"PipeRequest(user={self._user!r}, previous={self._previous!r}, "
                f"fragment={self._fragment!r}, cancelled={self.cancelled})")


# ---------------------------------------------------------------------------
# Protocol — every hook must match this signature
# ---------------------------------------------------------------------------

class PipeHook(Protocol):
    def __call__(self, request: PipeRequest) -> None: ...
