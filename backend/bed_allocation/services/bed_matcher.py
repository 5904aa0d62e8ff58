"""
Bed matcher.

Greedy cascade of filter levels over a snapshot of the bed pool. Each
level is a list of available beds sorted by bed number; the first
non-empty level wins.

Hinted cascade (recommend_bed):
    1. hinted ward, equipment covers every required tag
    2. hinted ward, equipment shares at least one required tag
    3. hinted ward, any available bed
    4. steps 1-3 against each overflow ward, unless the hint is one
    5. any ward, every required tag
    6. any ward, any available bed

Global cascade (recommend_bed_global), for emergency intake:
    steps 1-3 per ward ranked ER, ICU, general, then any available bed.

These functions never touch the database. Callers build a fresh snapshot
for every call.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Iterator, Tuple

from bed_allocation.config import settings
from bed_allocation.models.enums import BedStatusEnum, WardTypeEnum, WARD_TYPE_PRIORITY
from bed_allocation.utils.helpers import normalize_equipment_tags


@dataclass(frozen=True)
class BedSnapshot:
    """Read-only view of one bed and its ward at snapshot time."""
    id: str
    bed_number: str
    ward_id: str
    ward_name: str
    ward_type: WardTypeEnum
    status: BedStatusEnum
    equipment: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_available(self) -> bool:
        return self.status == BedStatusEnum.AVAILABLE


def make_snapshot(
    id: str,
    bed_number: str,
    ward_id: str,
    ward_name: str,
    ward_type: WardTypeEnum,
    status: BedStatusEnum,
    equipment: Optional[Sequence[str]] = None
) -> BedSnapshot:
    """Builds a snapshot with normalized equipment tags."""
    return BedSnapshot(
        id=id,
        bed_number=bed_number,
        ward_id=ward_id,
        ward_name=ward_name,
        ward_type=ward_type,
        status=status,
        equipment=tuple(normalize_equipment_tags(equipment)),
    )


# ============================================
# PREDICATES
# ============================================

def _in_ward(bed: BedSnapshot, ward_hint: str) -> bool:
    hint = ward_hint.strip()
    return bed.ward_id == hint or bed.ward_name.lower() == hint.lower()


def _has_all(bed: BedSnapshot, tags: List[str]) -> bool:
    return set(tags).issubset(bed.equipment)


def _has_any(bed: BedSnapshot, tags: List[str]) -> bool:
    return bool(set(tags).intersection(bed.equipment))


def _is_overflow(bed: BedSnapshot, overflow_names: Sequence[str]) -> bool:
    names = {name.lower() for name in overflow_names}
    return bed.ward_type == WardTypeEnum.ER or bed.ward_name.lower() in names


def _sorted_available(beds) -> List[BedSnapshot]:
    return sorted(
        (bed for bed in beds if bed.is_available),
        key=lambda bed: bed.bed_number
    )


# ============================================
# CASCADE LEVELS
# ============================================

def _ward_levels(ward_beds: List[BedSnapshot], tags: List[str]) -> Iterator[List[BedSnapshot]]:
    """Steps 1-3 for one ward."""
    available = _sorted_available(ward_beds)
    yield [bed for bed in available if _has_all(bed, tags)]
    if tags:
        yield [bed for bed in available if _has_any(bed, tags)]
    yield available


def _hinted_levels(
    pool: Sequence[BedSnapshot],
    ward_hint: str,
    tags: List[str],
    fallback: bool,
    overflow_names: Sequence[str]
) -> Iterator[List[BedSnapshot]]:
    hinted = [bed for bed in pool if _in_ward(bed, ward_hint)]
    yield from _ward_levels(hinted, tags)

    if not fallback:
        return

    hint_is_overflow = any(_is_overflow(bed, overflow_names) for bed in hinted) or \
        ward_hint.strip().lower() in {name.lower() for name in overflow_names}
    if not hint_is_overflow:
        overflow = [
            bed for bed in pool
            if _is_overflow(bed, overflow_names) and not _in_ward(bed, ward_hint)
        ]
        for ward_name in sorted({bed.ward_name for bed in overflow}):
            yield from _ward_levels(
                [bed for bed in overflow if bed.ward_name == ward_name], tags
            )

    available = _sorted_available(pool)
    yield [bed for bed in available if _has_all(bed, tags)]
    yield available


def _global_levels(
    pool: Sequence[BedSnapshot],
    tags: List[str]
) -> Iterator[List[BedSnapshot]]:
    def ward_rank(bed: BedSnapshot):
        try:
            type_rank = WARD_TYPE_PRIORITY.index(bed.ward_type)
        except ValueError:
            type_rank = len(WARD_TYPE_PRIORITY)
        return (type_rank, bed.ward_name.lower())

    ward_keys = sorted({(ward_rank(bed), bed.ward_id) for bed in pool})
    for _, ward_id in ward_keys:
        yield from _ward_levels([bed for bed in pool if bed.ward_id == ward_id], tags)

    yield _sorted_available(pool)


def _first(levels: Iterator[List[BedSnapshot]]) -> Optional[BedSnapshot]:
    for level in levels:
        if level:
            return level[0]
    return None


def _collect(levels: Iterator[List[BedSnapshot]], limit: int) -> List[BedSnapshot]:
    ranked: List[BedSnapshot] = []
    seen = set()
    for level in levels:
        for bed in level:
            if bed.id in seen:
                continue
            seen.add(bed.id)
            ranked.append(bed)
            if len(ranked) >= limit:
                return ranked
    return ranked


# ============================================
# PUBLIC API
# ============================================

def recommend_bed(
    pool: Sequence[BedSnapshot],
    ward_hint: str,
    required_tags: Optional[Sequence[str]] = None,
    fallback: bool = True,
    overflow_names: Optional[Sequence[str]] = None
) -> Optional[BedSnapshot]:
    """
    Recommends one bed for a ward hint and required equipment.

    Args:
        pool: Snapshot of the bed pool
        ward_hint: Ward id or ward name
        required_tags: Equipment tags the patient needs
        fallback: If False only the hinted ward is searched (steps 1-3)
        overflow_names: Ward names treated as overflow wards

    Returns:
        The best bed or None when nothing is available
    """
    if overflow_names is None:
        overflow_names = settings.OVERFLOW_WARD_NAMES
    tags = normalize_equipment_tags(required_tags)
    return _first(_hinted_levels(pool, ward_hint, tags, fallback, overflow_names))


def recommend_bed_global(
    pool: Sequence[BedSnapshot],
    required_tags: Optional[Sequence[str]] = None
) -> Optional[BedSnapshot]:
    """
    Recommends one bed ranking whole wards by type instead of a hint.

    Args:
        pool: Snapshot of the bed pool
        required_tags: Equipment tags the patient needs

    Returns:
        The best bed or None
    """
    tags = normalize_equipment_tags(required_tags)
    return _first(_global_levels(pool, tags))


def rank_beds(
    pool: Sequence[BedSnapshot],
    ward_hint: str,
    required_tags: Optional[Sequence[str]] = None,
    limit: int = 3,
    emergency: bool = False,
    overflow_names: Optional[Sequence[str]] = None
) -> List[BedSnapshot]:
    """
    Ranks up to `limit` distinct beds, best first.

    The first element is always the bed the single recommendation would
    return for the same arguments.

    Args:
        pool: Snapshot of the bed pool
        ward_hint: Ward id or ward name (ignored when emergency is True)
        required_tags: Equipment tags the patient needs
        limit: Maximum number of beds
        emergency: Use the global ward ranking

    Returns:
        Ranked list of beds, possibly empty
    """
    if limit <= 0:
        return []
    if overflow_names is None:
        overflow_names = settings.OVERFLOW_WARD_NAMES
    tags = normalize_equipment_tags(required_tags)
    if emergency:
        return _collect(_global_levels(pool, tags), limit)
    return _collect(_hinted_levels(pool, ward_hint, tags, True, overflow_names), limit)
