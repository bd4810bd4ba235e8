"""
Per-assignment training targets.

A ``TargetSpec`` is an ordered mapping from a measurable dimension
(reps, weight, time_seconds, rpe) to its prescribed value. Storage keeps the
historical parallel-list encoding (``target_types`` + ``values``); this type
is the only way in or out of it, so the two lists can never drift apart.
"""
import math
from collections.abc import Mapping

from apps.core.exceptions import InvalidSpecification

DIMENSIONS = ('reps', 'weight', 'time_seconds', 'rpe')
RPE_MAX = 10


def _check_dimension(dimension):
    if dimension not in DIMENSIONS:
        raise InvalidSpecification(
            f"Unrecognised target dimension '{dimension}'. Expected one of: {', '.join(DIMENSIONS)}.",
            field='target_types',
        )
    return dimension


def _check_value(dimension, value):
    # Values are numeric prescriptions or short semantic ones ("8-12", "AMRAP")
    if isinstance(value, bool):
        raise InvalidSpecification(f"Invalid value for '{dimension}'.", field='values')
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidSpecification(f"'{dimension}' must be a finite number.", field='values')
        if value < 0:
            raise InvalidSpecification(f"'{dimension}' cannot be negative.", field='values')
        if dimension == 'rpe' and value > RPE_MAX:
            raise InvalidSpecification(f"'rpe' cannot exceed {RPE_MAX}.", field='values')
        return value
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise InvalidSpecification(f"Invalid value for '{dimension}'.", field='values')


class TargetSpec(Mapping):
    __slots__ = ('_targets',)

    def __init__(self, targets=None):
        pairs = targets.items() if isinstance(targets, Mapping) else (targets or ())
        validated = {}
        for dimension, value in pairs:
            _check_dimension(dimension)
            if dimension in validated:
                raise InvalidSpecification(
                    f"Dimension '{dimension}' is specified more than once.",
                    field='target_types',
                )
            validated[dimension] = _check_value(dimension, value)
        self._targets = validated

    @classmethod
    def from_lists(cls, target_types, values):
        target_types = list(target_types or [])
        values = list(values or [])
        if len(target_types) != len(values):
            raise InvalidSpecification(
                f"Got {len(target_types)} target types but {len(values)} values.",
                field='values',
            )
        return cls(zip(target_types, values))

    @classmethod
    def from_pairs(cls, pairs):
        return cls(list(pairs))

    def __getitem__(self, dimension):
        _check_dimension(dimension)
        return self._targets[dimension]

    def __iter__(self):
        return iter(self._targets)

    def __len__(self):
        return len(self._targets)

    def __hash__(self):
        # Equality ignores order (Mapping.__eq__), so the hash must too
        return hash(frozenset(self._targets.items()))

    def __repr__(self):
        return f"TargetSpec({self._targets!r})"

    def get(self, dimension, default=None):
        """Prescribed value for ``dimension`` or ``default`` when not specified."""
        _check_dimension(dimension)
        return self._targets.get(dimension, default)

    def as_lists(self):
        """The (target_types, values) parallel lists used for storage."""
        return list(self._targets), list(self._targets.values())

    def as_pairs(self):
        return list(self._targets.items())
