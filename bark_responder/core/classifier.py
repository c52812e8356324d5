"""Threshold-based bark level classification"""

import logging
import numbers
from typing import Iterable, List, Optional, Sequence

from .exceptions import ConfigCorruptError, ThresholdOrderError
from .models import ThresholdLevel, generate_id

logger = logging.getLogger(__name__)

# dBFS bounds for editable thresholds
MIN_THRESHOLD_DB = -60.0
MAX_THRESHOLD_DB = 0.0
LEVEL_STEP_DB = 5.0

DEFAULT_THRESHOLDS = (
    ThresholdLevel(id='1', name='Gentle Woof', value=-30.0),
    ThresholdLevel(id='2', name='Big Bark', value=-15.0),
)


def default_thresholds() -> List[ThresholdLevel]:
    """Fresh copies of the built-in threshold configuration."""
    return [ThresholdLevel(t.id, t.name, t.value) for t in DEFAULT_THRESHOLDS]


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _coerce_level(item) -> ThresholdLevel:
    """Turn a ThresholdLevel or a persisted dict into a ThresholdLevel."""
    if isinstance(item, ThresholdLevel):
        if not _is_number(item.value):
            raise ConfigCorruptError(f"Threshold '{item.id}' has non-numeric value {item.value!r}")
        return item
    if isinstance(item, dict):
        if not all(key in item for key in ('id', 'name', 'value')):
            raise ConfigCorruptError(f"Threshold entry is missing fields: {item!r}")
        if not _is_number(item['value']):
            raise ConfigCorruptError(f"Threshold '{item['id']}' has non-numeric value {item['value']!r}")
        return ThresholdLevel.from_dict(item)
    raise ConfigCorruptError(f"Unrecognized threshold entry: {item!r}")


def _ordered_levels(thresholds) -> List[ThresholdLevel]:
    """Sort thresholds ascending, falling back to defaults for corrupt input."""
    if isinstance(thresholds, ThresholdConfig):
        return thresholds.levels
    try:
        if not isinstance(thresholds, (list, tuple)):
            raise ConfigCorruptError(f"Thresholds must be a sequence, got {type(thresholds).__name__}")
        levels = [_coerce_level(item) for item in thresholds]
    except ConfigCorruptError as e:
        logger.warning(f"⚠️ Threshold configuration corrupt ({e}); using defaults")
        levels = list(DEFAULT_THRESHOLDS)
    return sorted(levels, key=lambda level: level.value)


def classify(sample: float, thresholds, sensitivity: float = 1.0) -> Optional[int]:
    """Map a loudness sample to a 1-based bark level.

    The sample is scaled by ``sensitivity`` and compared against the
    thresholds in ascending order. The highest threshold that is strictly
    exceeded wins; a sample equal to a threshold does not exceed it.

    Args:
        sample: Loudness reading in dBFS
        thresholds: Sequence of ThresholdLevel (or a ThresholdConfig)
        sensitivity: Multiplier applied to the sample before comparison

    Returns:
        1-based level index, or None when no threshold is exceeded
    """
    adjusted = sample * sensitivity

    highest_match = None
    for index, level in enumerate(_ordered_levels(thresholds)):
        if adjusted > level.value:
            highest_match = index + 1

    return highest_match


class ThresholdConfig:
    """Ordered threshold levels with strictly increasing values.

    The ordering invariant is checked on construction and at every mutation,
    so a ThresholdConfig is always safe to classify against.
    """

    def __init__(self, levels: Optional[Iterable[ThresholdLevel]] = None):
        levels = list(levels) if levels is not None else default_thresholds()
        self._validate(levels)
        self._levels = levels

    @classmethod
    def from_list(cls, data) -> 'ThresholdConfig':
        """Build from persisted data, validating it once at the load boundary.

        Raises:
            ConfigCorruptError: if the data is not a list of well-formed levels
                or the values are not strictly increasing
        """
        if not isinstance(data, (list, tuple)):
            raise ConfigCorruptError(f"Thresholds must be a list, got {type(data).__name__}")
        levels = sorted((_coerce_level(item) for item in data), key=lambda level: level.value)
        try:
            return cls(levels)
        except ThresholdOrderError as e:
            raise ConfigCorruptError(str(e))

    @classmethod
    def default(cls) -> 'ThresholdConfig':
        return cls(default_thresholds())

    @staticmethod
    def _validate(levels: Sequence[ThresholdLevel]):
        if not levels:
            raise ThresholdOrderError("At least one threshold level is required")

        ids = [level.id for level in levels]
        if len(set(ids)) != len(ids):
            raise ThresholdOrderError(f"Threshold ids must be unique, got {ids}")

        for previous, current in zip(levels, levels[1:]):
            if not previous.value < current.value:
                raise ThresholdOrderError(
                    f"Threshold '{current.name}' ({current.value}) must be greater than "
                    f"'{previous.name}' ({previous.value})"
                )

    @property
    def levels(self) -> List[ThresholdLevel]:
        """Copy of the levels in ascending order."""
        return list(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self):
        return iter(list(self._levels))

    def __eq__(self, other) -> bool:
        if not isinstance(other, ThresholdConfig):
            return NotImplemented
        return self._levels == other._levels

    def __repr__(self) -> str:
        return f"ThresholdConfig({self._levels!r})"

    def to_list(self) -> List[dict]:
        return [level.to_dict() for level in self._levels]

    def index_of(self, level_id: str) -> int:
        """Position of a level by id."""
        for index, level in enumerate(self._levels):
            if level.id == level_id:
                return index
        raise KeyError(f"Unknown threshold level: {level_id}")

    def level_number(self, level_id: str) -> int:
        """1-based bark level for a threshold id."""
        return self.index_of(level_id) + 1

    def add_level(self, name: Optional[str] = None, value: Optional[float] = None) -> ThresholdLevel:
        """Append a new, louder level above the current highest one."""
        highest = self._levels[-1]
        if value is None:
            value = highest.value + LEVEL_STEP_DB
        if value > MAX_THRESHOLD_DB:
            raise ThresholdOrderError(f"Cannot add a level above {MAX_THRESHOLD_DB} dBFS")
        if not value > highest.value:
            raise ThresholdOrderError(
                f"New level ({value}) must be louder than '{highest.name}' ({highest.value})"
            )

        level = ThresholdLevel(
            id=generate_id(),
            name=name or f"Level {len(self._levels) + 1}",
            value=float(value)
        )
        self._levels.append(level)
        logger.info(f"➕ Added threshold level '{level.name}' at {level.value} dBFS")
        return level

    def remove_level(self, level_id: str) -> ThresholdLevel:
        """Remove a level. The last remaining level cannot be removed."""
        index = self.index_of(level_id)
        if len(self._levels) == 1:
            raise ThresholdOrderError("Cannot remove the only threshold level")
        level = self._levels.pop(index)
        logger.info(f"➖ Removed threshold level '{level.name}'")
        return level

    def update_value(self, level_id: str, value: float) -> ThresholdLevel:
        """Move a level, keeping it strictly between its neighbours."""
        index = self.index_of(level_id)
        if not MIN_THRESHOLD_DB <= value <= MAX_THRESHOLD_DB:
            raise ThresholdOrderError(
                f"Threshold value must be between {MIN_THRESHOLD_DB} and {MAX_THRESHOLD_DB} dBFS, got {value}"
            )
        if index > 0 and not value > self._levels[index - 1].value:
            raise ThresholdOrderError(
                f"Value {value} must be greater than '{self._levels[index - 1].name}' "
                f"({self._levels[index - 1].value})"
            )
        if index < len(self._levels) - 1 and not value < self._levels[index + 1].value:
            raise ThresholdOrderError(
                f"Value {value} must be less than '{self._levels[index + 1].name}' "
                f"({self._levels[index + 1].value})"
            )

        current = self._levels[index]
        updated = ThresholdLevel(id=current.id, name=current.name, value=float(value))
        self._levels[index] = updated
        return updated

    def rename_level(self, level_id: str, name: str) -> ThresholdLevel:
        index = self.index_of(level_id)
        current = self._levels[index]
        renamed = ThresholdLevel(id=current.id, name=name, value=current.value)
        self._levels[index] = renamed
        return renamed
