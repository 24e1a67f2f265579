"""
Wildcard event-name matching.

Supported Patterns
------------------
- Exact:    "streak.extended" matches only itself
- Global:   "*" matches any event
- Prefix:   "streak.*" matches "streak.extended", "streak.reset"
- Suffix:   "*.completed" matches "daily_challenge.completed"
- Sandwich: "daily_challenge.*.done" matches "daily_challenge.batch.done"

Matching is case-sensitive. Repeated wildcards collapse to one.
"""

from __future__ import annotations


class EventRouter:
    """
    Stateless matcher shared by the bus registry.

    >>> EventRouter().matches("streak.reset", "streak.*")
    True
    >>> EventRouter().matches("streak.reset", "daily_challenge.*")
    False
    """

    def matches(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True

        if "*" not in pattern:
            return event_name == pattern

        while "**" in pattern:
            pattern = pattern.replace("**", "*")

        parts = pattern.split("*")
        head, tail = parts[0], parts[-1]

        if head and not event_name.startswith(head):
            return False
        if tail and not event_name.endswith(tail):
            return False
        # Prefix and suffix must not overlap inside a short name.
        if len(head) + len(tail) > len(event_name):
            return False

        idx = len(head)
        limit = len(event_name) - len(tail)
        for mid in parts[1:-1]:
            if not mid:
                continue
            next_idx = event_name.find(mid, idx, limit)
            if next_idx == -1:
                return False
            idx = next_idx + len(mid)

        return True

    def is_pattern(self, event_key: str) -> bool:
        return "*" in event_key
