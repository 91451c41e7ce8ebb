"""Decides whether a captured snapshot deserves its own undo step."""

from __future__ import annotations

import hashlib
import json
from typing import Optional

from flow_history.history.snapshot import Snapshot


def is_significant_change(
    old: Optional[Snapshot],
    new: Snapshot,
    *,
    skip_viewport_only: bool = True,
) -> bool:
    """Return True when ``new`` should be committed after ``old``.

    Node or edge differences are always significant. A pure viewport change
    (or no change at all) only counts when ``skip_viewport_only`` is False.
    """

    if old is None:
        return True
    if not old.same_content(new):
        return True
    return not skip_viewport_only


def snapshot_digest(snapshot: Snapshot) -> str:
    """Short content hash of nodes and edges, for logs and diagnostics."""

    payload = json.dumps(
        {"nodes": snapshot.nodes, "edges": snapshot.edges},
        sort_keys=True,
        default=repr,
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]


__all__ = ["is_significant_change", "snapshot_digest"]
