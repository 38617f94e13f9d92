# backend/mt_core/common/spectacular_hooks.py
from __future__ import annotations


def preprocess_exclude_legacy_api(endpoints):
    """
    ROOT_URLCONF includes both:
      /api/v1/  (primary)
      /api/     (legacy alias)

    drf-spectacular would document BOTH, causing duplicate paths and
    operationId collisions (retrieve2, list2, ...).

    This hook drops the legacy /api/* endpoints from the schema and keeps /api/v1/*.
    """
    filtered = []
    for path, path_regex, method, callback in endpoints:
        if path.startswith("/api/") and not path.startswith("/api/v1/"):
            continue
        filtered.append((path, path_regex, method, callback))
    return filtered
