"""
Seed schools and their draftable players.

Usage:
    SCHOOLFANTA_DB_URL=... python -m app.seed.seeder

Safe to rerun: schools are matched by name, players by (school, name).
"""

from typing import Any, Dict, List

from app.common.logger import get_logger
from app.draft.rules import Role
from app.persistence.bootstrap import init_db
from app.persistence.models import RealPlayer, School
from app.persistence.session import SessionLocal, dispose_engine, init_engine
from app.seed.loader import load_yaml

logger = get_logger(__name__)

CATALOG_FILE = "schools.yaml"

_ROLES = {r.value for r in Role}


def _validate_entry(school: str, entry: Dict[str, Any]) -> None:
    if entry.get("role") not in _ROLES:
        raise ValueError(f"{school}: invalid role {entry.get('role')!r} for {entry.get('name')!r}")
    if not isinstance(entry.get("value"), int) or entry["value"] < 0:
        raise ValueError(f"{school}: invalid value for {entry.get('name')!r}")


def seed_catalog(db, catalog: List[Dict[str, Any]]) -> int:
    """Insert what is missing; returns the number of players created. Caller commits."""
    created = 0

    for item in catalog:
        school = db.query(School).filter_by(name=item["name"]).first()
        if not school:
            school = School(name=item["name"])
            db.add(school)
            db.flush()

        for entry in item.get("players") or []:
            _validate_entry(school.name, entry)

            existing = (
                db.query(RealPlayer)
                .filter_by(school_id=school.school_id, name=entry["name"])
                .first()
            )
            if existing:
                continue

            db.add(
                RealPlayer(
                    school_id=school.school_id,
                    name=entry["name"],
                    role=entry["role"],
                    value=entry["value"],
                )
            )
            created += 1

        logger.info(f"[seed] {school.name}: {len(item.get('players') or [])} players")

    return created


def main():
    init_engine()
    init_db()

    db = SessionLocal()
    try:
        created = seed_catalog(db, load_yaml(CATALOG_FILE))
        db.commit()
        logger.info(f"[seed] done, {created} players created")
    finally:
        db.close()
        dispose_engine()


if __name__ == "__main__":
    main()
