"""Interface of the optional session store the controller reports to."""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Persists a short summary of every completed run.

    ``timestamp`` is an ISO 8601 string, ``summary`` the output of
    :meth:`photorestore.restoration.report.RestorationReport.summary`.
    """

    def save_session(self, filename: str, timestamp: str, summary: Dict[str, Any]) -> None:
        ...


__all__ = ["SessionStore"]
