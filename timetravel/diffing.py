"""
State Diffing

Computes what changed between two recorded snapshots. Used by observers
to build per-key payloads and by the detail view to show prior vs target.

Mapping states are compared per key. A key whose new value is None is
treated as removed (that is how storage snapshots mark absent keys).
Lists of records carrying a 'key' field (cache summaries) are compared
as mappings keyed by that field. Anything else is one scalar change.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


SCALAR_KEY = "$value"


@dataclass(frozen=True)
class KeyChange:
    key: str
    old: Any
    new: Any

    def to_dict(self) -> dict:
        return {'old': self.old, 'new': self.new}


@dataclass(frozen=True)
class StateDiff:
    """Added, removed and changed keys between two snapshots."""
    added: Tuple[KeyChange, ...] = field(default_factory=tuple)
    removed: Tuple[KeyChange, ...] = field(default_factory=tuple)
    changed: Tuple[KeyChange, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    @property
    def affected_keys(self) -> Tuple[str, ...]:
        return tuple(c.key for c in self.added + self.removed + self.changed)

    def as_changes(self) -> Dict[str, dict]:
        """Flat key -> {old, new} map, the payload shape observers record."""
        return {c.key: c.to_dict() for c in self.added + self.removed + self.changed}

    def to_dict(self) -> dict:
        return {
            'added': {c.key: c.new for c in self.added},
            'removed': {c.key: c.old for c in self.removed},
            'changed': {c.key: c.to_dict() for c in self.changed},
        }

    @staticmethod
    def between(prior: Any, target: Any) -> StateDiff:
        prior_map = _as_mapping(prior)
        target_map = _as_mapping(target)

        if prior_map is None or target_map is None:
            if prior == target:
                return StateDiff()
            return StateDiff(changed=(KeyChange(SCALAR_KEY, prior, target),))

        added, removed, changed = [], [], []
        for key in sorted(set(prior_map) | set(target_map)):
            old = prior_map.get(key)
            new = target_map.get(key)
            if old == new:
                continue
            if old is None:
                added.append(KeyChange(key, None, new))
            elif new is None:
                removed.append(KeyChange(key, old, None))
            else:
                changed.append(KeyChange(key, old, new))

        return StateDiff(added=tuple(added), removed=tuple(removed), changed=tuple(changed))


def _as_mapping(state: Any) -> Optional[Mapping[str, Any]]:
    if state is None:
        return {}
    if isinstance(state, Mapping):
        return {str(k): v for k, v in state.items()}
    if isinstance(state, (list, tuple)) and all(
        isinstance(item, Mapping) and 'key' in item for item in state
    ):
        return {str(item['key']): dict(item) for item in state}
    return None
