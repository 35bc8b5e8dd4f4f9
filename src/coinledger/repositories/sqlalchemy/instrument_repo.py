"""SQLAlchemy implementation of InstrumentRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from coinledger.domain.models import TrackedInstrument
from coinledger.repositories.sqlalchemy.orm_models import TrackedInstrumentORM


class SqlAlchemyInstrumentRepository:
    """SQLAlchemy-backed tracked instrument repository."""

    def __init__(self, db: Session):
        self._db = db

    def list_active(self) -> list[TrackedInstrument]:
        """Active instruments, ordered by symbol."""
        orm_items = (
            self._db.query(TrackedInstrumentORM)
            .filter(TrackedInstrumentORM.is_active == True)  # noqa: E712
            .order_by(TrackedInstrumentORM.symbol)
            .all()
        )
        return [self._to_domain(i) for i in orm_items]

    def get_by_symbol(self, symbol: str) -> Optional[TrackedInstrument]:
        orm_item = (
            self._db.query(TrackedInstrumentORM)
            .filter(TrackedInstrumentORM.symbol == symbol.upper())
            .first()
        )
        return self._to_domain(orm_item) if orm_item else None

    def count(self) -> int:
        return self._db.query(TrackedInstrumentORM).count()

    def upsert(self, instrument: TrackedInstrument) -> TrackedInstrument:
        """Insert or update an instrument by coin id."""
        orm_item = self._db.get(TrackedInstrumentORM, instrument.coin_id)
        if orm_item:
            orm_item.symbol = instrument.symbol.upper()
            orm_item.name = instrument.name
            orm_item.is_active = instrument.is_active
        else:
            orm_item = TrackedInstrumentORM(
                coin_id=instrument.coin_id,
                symbol=instrument.symbol.upper(),
                name=instrument.name,
                is_active=instrument.is_active,
            )
            self._db.add(orm_item)

        self._db.commit()
        self._db.refresh(orm_item)
        return self._to_domain(orm_item)

    @staticmethod
    def _to_domain(orm: TrackedInstrumentORM) -> TrackedInstrument:
        return TrackedInstrument(
            coin_id=orm.coin_id,
            symbol=orm.symbol,
            name=orm.name,
            is_active=orm.is_active,
        )
