# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import copy
import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple


QueryPairs = Tuple[Tuple[str, str], ...]
HeaderPairs = Tuple[Tuple[str, str], ...]


def _format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def serialize_query(params: Optional[Mapping[str, Any]]) -> QueryPairs:
    """
    Flatten query parameters into ordered key/value pairs.

    Sequences become repeated keys (``tags=a&tags=b``), never bracketed or
    comma-joined. ``None`` values are dropped.
    """
    if not params:
        return ()

    pairs = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            for item in value:
                if item is not None:
                    pairs.append((key, _format_query_value(item)))
        else:
            pairs.append((key, _format_query_value(value)))
    return tuple(pairs)


@dataclass(frozen=True)
class PendingRequest:
    """
    Immutable description of an outgoing call.

    The bearer header is not stored here; it is attached from the credential
    store on every send so a replay picks up the renewed credential.
    """

    method: str
    path: str
    body: Any = None
    query: QueryPairs = ()
    headers: HeaderPairs = ()
    retried: bool = False

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "PendingRequest":
        return cls(
            method=method.upper(),
            path=path,
            body=copy.deepcopy(body),
            query=serialize_query(params),
            headers=tuple((str(k), str(v)) for k, v in (headers or {}).items()),
        )

    def mark_retried(self) -> "PendingRequest":
        return dataclasses.replace(self, retried=True)

    def targets(self, path: str) -> bool:
        """Whether this request hits ``path``, ignoring query and trailing slash."""
        own = self.path.split("?", 1)[0].rstrip("/") or "/"
        other = path.split("?", 1)[0].rstrip("/") or "/"
        return own == other
