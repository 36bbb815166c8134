"""Health check router."""

import logging
from pathlib import Path
from typing import Dict, Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.dependencies import get_db
from relgraph.models import Company, Contact, Meeting

logger = logging.getLogger(__name__)

router = APIRouter()

_COUNTED = {"companies": Company, "contacts": Contact, "meetings": Meeting}


async def _record_counts(db: AsyncSession) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for label, model in _COUNTED.items():
        counts[label] = (await db.execute(select(func.count()).select_from(model))).scalar_one()
    return counts


def _load_alembic_head() -> Optional[str]:
    project_root = Path(__file__).resolve().parents[2]
    cfg_path = project_root / "alembic.ini"
    script_location = project_root / "alembic"
    if not cfg_path.exists() or not script_location.exists():
        return None

    config = Config(str(cfg_path))
    config.set_main_option("script_location", str(script_location))
    script = ScriptDirectory.from_config(config)
    return script.get_current_head()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database check, migration head comparison and record counts."""

    db_ok = False
    alembic_current: Optional[str] = None
    alembic_head: Optional[str] = None
    counts: Dict[str, int] = {}

    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
        counts = await _record_counts(db)
    except SQLAlchemyError as exc:
        logger.warning("Health check database query failed: %s", exc)

    if db_ok:
        try:
            async with db.begin_nested():
                version_result = await db.execute(text("SELECT version_num FROM alembic_version"))
                alembic_current = version_result.scalar_one_or_none()
        except SQLAlchemyError:
            # schema created without alembic (tests, first run)
            alembic_current = None

    try:
        alembic_head = _load_alembic_head()
    except Exception as exc:
        logger.warning("Could not read alembic head: %s", exc)

    return {
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(alembic_current and alembic_head and alembic_current == alembic_head),
        "alembic_current": alembic_current,
        "alembic_head": alembic_head,
        "counts": counts,
    }
