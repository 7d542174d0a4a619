"""Persistence layer for garage vehicles.

The calculator itself is stateless; this store only keeps the vehicle and
financing records a user has entered, as a key-value contract of
``get``/``set``/``delete``/``list`` per owner. It defaults to SQLite for
local use but accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from . import settings
from .data_models import Vehicle

logger = logging.getLogger(__name__)

Base = declarative_base()


class VehicleRecordModel(Base):
    __tablename__ = "vehicles"

    owner = Column(String(64), primary_key=True)
    key = Column(String(64), primary_key=True)
    vehicle_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class VehicleStore:
    """Database-backed vehicle store keyed by (owner, key)."""

    def __init__(self, url: str, *, max_per_owner: int = settings.MAX_VEHICLES_PER_OWNER) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_owner = max_per_owner

    def get(self, owner: str, key: str) -> Optional[Vehicle]:
        if not owner:
            return None
        with self._session_factory() as session:
            row = session.get(VehicleRecordModel, (owner, key))
            return self._to_vehicle(row) if row else None

    def set(self, owner: str, key: str, vehicle: Vehicle) -> None:
        """Insert or replace a vehicle.

        Raises ``ValueError`` when adding a new key would exceed the
        per-owner limit.
        """
        if not owner:
            raise ValueError("Owner is required")
        payload = json.dumps(vehicle.to_dict())
        with self._session_factory() as session:
            row = session.get(VehicleRecordModel, (owner, key))
            if row is None:
                count = len(self._keys(session, owner))
                if self._max_per_owner and count >= self._max_per_owner:
                    raise ValueError(f"Garage is full ({self._max_per_owner} vehicles)")
                session.add(VehicleRecordModel(owner=owner, key=key, vehicle_json=payload))
                logger.info("Stored vehicle %s for owner %s", key, owner)
            else:
                row.vehicle_json = payload
                row.updated_at = datetime.utcnow()
                logger.info("Updated vehicle %s for owner %s", key, owner)
            session.commit()

    def delete(self, owner: str, key: str) -> bool:
        if not owner:
            return False
        with self._session_factory() as session:
            row = session.get(VehicleRecordModel, (owner, key))
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Removed vehicle %s for owner %s", key, owner)
        return True

    def list(self, owner: str) -> Dict[str, Vehicle]:
        if not owner:
            return {}
        with self._session_factory() as session:
            rows: Iterable[VehicleRecordModel] = session.execute(
                select(VehicleRecordModel)
                .where(VehicleRecordModel.owner == owner)
                .order_by(VehicleRecordModel.key.asc())
            ).scalars()
            return {row.key: self._to_vehicle(row) for row in rows}

    @staticmethod
    def _keys(session, owner: str) -> list:
        return list(
            session.execute(select(VehicleRecordModel.key).where(VehicleRecordModel.owner == owner)).scalars()
        )

    @staticmethod
    def _to_vehicle(row: VehicleRecordModel) -> Vehicle:
        return Vehicle.from_dict(json.loads(row.vehicle_json))


def create_store_from_env(url: Optional[str] = None) -> VehicleStore:
    return VehicleStore(url or settings.DATABASE_URL or settings.DEFAULT_DATABASE_URL)
