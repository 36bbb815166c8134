"""
Named merge policies for upserts.

Every read -> merge -> write in the repositories goes through one of these
so the conflict behaviour of each table is spelled out at the call site:

- apply_unconditional: incoming values replace stored ones
- apply_coalesce: incoming values only fill empty (None / "") fields
- keep_max: a numeric field only moves up
"""

from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def apply_unconditional(row: Any, values: Mapping[str, Any]) -> bool:
    """Write every value; returns True if anything changed."""
    changed = False
    for field, value in values.items():
        if getattr(row, field) != value:
            setattr(row, field, value)
            changed = True
    return changed


def apply_coalesce(row: Any, values: Mapping[str, Any]) -> bool:
    """Fill empty fields only; returns True if anything changed."""
    changed = False
    for field, value in values.items():
        if _is_empty(value):
            continue
        if _is_empty(getattr(row, field)):
            setattr(row, field, value)
            changed = True
    return changed


def keep_max(row: Any, field: str, value: Optional[float]) -> bool:
    """Raise ``field`` to ``value`` when strictly greater."""
    if value is None:
        return False
    current = getattr(row, field)
    if current is None or value > current:
        setattr(row, field, value)
        return True
    return False


async def upsert_by_key(
    db: AsyncSession,
    model: Type[ModelT],
    key: Dict[str, Any],
    values: Dict[str, Any],
    on_conflict: Callable[[ModelT], Any],
) -> ModelT:
    """
    Insert ``model(**key, **values)`` or merge into the existing row.

    ``key`` must be the primary key. ``on_conflict`` receives the stored row
    and applies one of the policies above.
    """
    current = await db.get(model, key)
    if current is not None:
        on_conflict(current)
        await db.flush()
        return current

    row = model(**key, **values)
    db.add(row)
    await db.flush()
    return row
