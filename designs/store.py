"""
designs/store.py -- SQLAlchemy-backed persistence layer for design submissions.

Uses SQLAlchemy Core (not ORM) so the dataclasses in designs/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change.

Pattern: Repository + Data Mapper. DesignStore is the repository; the
_row_to_design function is the mapper. Route handlers never touch SQL.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = DesignStore()                                # URL from settings
    store = DesignStore("postgresql://user:pw@host/db")
    design_id = store.create_design(design)
    mine = store.list_designs(user_id=7)
    store.update_design(design_id, marking="HK 18K")
    store.close()
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine

from core.config import get_settings
from designs.models import Design, SideStone

logger = logging.getLogger("designportal.designs")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_designs = Table(
    "designs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("design_number", String(64), nullable=False, index=True),
    Column("style", String(30), nullable=False),
    Column("gold_karat", String(10), nullable=False),
    Column("approx_gold_weight", String(50), nullable=False),
    Column("stone_type", String(30), nullable=False),
    Column("diamond_shape", String(30), nullable=False),
    Column("carat_weight", String(50), nullable=False),
    Column("clarity", String(10), nullable=False),
    Column("side_stones", Text, nullable=False, server_default="[]"),  # JSON array
    Column("marking", String(50), nullable=False, server_default=""),
    Column("logo_file_name", String(255)),
    Column("logo_data", Text),  # base64 data URL
    Column("media_file_name", String(255)),
    Column("media_data", Text),  # base64 data URL
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Every column except the identity and ownership ones.
_MUTABLE_FIELDS = frozenset(c.name for c in _designs.columns) - {"id", "user_id", "created_at", "updated_at"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _dump_side_stones(stones: list) -> str:
    return json.dumps([asdict(s) if isinstance(s, SideStone) else dict(s) for s in stones])


def _load_side_stones(raw: Optional[str]) -> list[SideStone]:
    if not raw:
        return []
    return [SideStone(**item) for item in json.loads(raw)]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DesignStore:
    """Repository for Design entities."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Design store ping failed")
            return False
        return True

    def create_design(self, design: Design) -> int:
        """Insert a design and return its assigned database ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _designs.insert().values(
                    user_id=design.user_id,
                    design_number=design.design_number,
                    style=design.style,
                    gold_karat=design.gold_karat,
                    approx_gold_weight=design.approx_gold_weight,
                    stone_type=design.stone_type,
                    diamond_shape=design.diamond_shape,
                    carat_weight=design.carat_weight,
                    clarity=design.clarity,
                    side_stones=_dump_side_stones(design.side_stones),
                    marking=design.marking,
                    logo_file_name=design.logo_file_name,
                    logo_data=design.logo_data,
                    media_file_name=design.media_file_name,
                    media_data=design.media_data,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_design(self, design_id: int) -> Optional[Design]:
        with self.engine.connect() as conn:
            row = conn.execute(_designs.select().where(_designs.c.id == design_id)).fetchone()
        return _row_to_design(row) if row is not None else None

    def list_designs(self, user_id: Optional[int] = None) -> list[Design]:
        """Return designs newest first; restricted to one owner when user_id is given."""
        query = _designs.select().order_by(_designs.c.created_at.desc(), _designs.c.id.desc())
        if user_id is not None:
            query = query.where(_designs.c.user_id == user_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_design(r) for r in rows]

    def count_designs(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_designs)).scalar()
        return result or 0

    def update_design(self, design_id: int, **fields) -> bool:
        """Update any design attributes except id, user_id and created_at.

        side_stones may be passed as a list of SideStone or plain dicts.
        Returns True if a row was updated, False if design_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown design fields: {unknown!r}")
        if "side_stones" in fields:
            fields["side_stones"] = _dump_side_stones(fields["side_stones"] or [])
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_designs.update().where(_designs.c.id == design_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_design(self, design_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_designs.delete().where(_designs.c.id == design_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_design(row) -> Design:
    return Design(
        id=row.id,
        user_id=row.user_id,
        design_number=row.design_number,
        style=row.style,
        gold_karat=row.gold_karat,
        approx_gold_weight=row.approx_gold_weight,
        stone_type=row.stone_type,
        diamond_shape=row.diamond_shape,
        carat_weight=row.carat_weight,
        clarity=row.clarity,
        side_stones=_load_side_stones(row.side_stones),
        marking=row.marking or "",
        logo_file_name=row.logo_file_name,
        logo_data=row.logo_data,
        media_file_name=row.media_file_name,
        media_data=row.media_data,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
