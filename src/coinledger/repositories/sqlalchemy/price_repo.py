"""SQLAlchemy implementation of PriceRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from coinledger.domain.models import PriceQuote
from coinledger.repositories.sqlalchemy.orm_models import PriceQuoteORM
from coinledger.repositories.sqlalchemy._convert import to_decimal, to_aware


class SqlAlchemyPriceRepository:
    """SQLAlchemy-backed price store. Each upsert commits on its own."""

    def __init__(self, db: Session):
        self._db = db

    def upsert(self, quote: PriceQuote) -> PriceQuote:
        """Insert or replace the quote for ``quote.coin_id``."""
        orm_quote = self._db.get(PriceQuoteORM, quote.coin_id)
        if orm_quote is None:
            orm_quote = PriceQuoteORM(coin_id=quote.coin_id)
            self._db.add(orm_quote)

        orm_quote.symbol = quote.symbol.upper()
        orm_quote.name = quote.name
        orm_quote.current_price = quote.current_price
        orm_quote.market_cap = quote.market_cap
        orm_quote.volume_24h = quote.volume_24h
        orm_quote.price_change_24h = quote.price_change_24h
        orm_quote.price_change_percentage_24h = quote.price_change_percentage_24h
        orm_quote.last_updated = quote.last_updated

        try:
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(orm_quote)
        return self._to_domain(orm_quote)

    def get_by_coin_id(self, coin_id: str) -> Optional[PriceQuote]:
        # Rows are written by the sync service through its own session
        orm_quote = self._db.get(PriceQuoteORM, coin_id, populate_existing=True)
        return self._to_domain(orm_quote) if orm_quote else None

    def get_by_symbols(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """Quotes keyed by upper-case symbol."""
        wanted = [s.upper() for s in symbols]
        if not wanted:
            return {}
        orm_quotes = (
            self._db.query(PriceQuoteORM)
            .filter(PriceQuoteORM.symbol.in_(wanted))
            .populate_existing()
            .all()
        )
        return {q.symbol: self._to_domain(q) for q in orm_quotes}

    def list_all(self) -> list[PriceQuote]:
        """All quotes, largest market cap first."""
        orm_quotes = (
            self._db.query(PriceQuoteORM)
            .order_by(PriceQuoteORM.market_cap.desc(), PriceQuoteORM.symbol)
            .populate_existing()
            .all()
        )
        return [self._to_domain(q) for q in orm_quotes]

    @staticmethod
    def _to_domain(orm: PriceQuoteORM) -> PriceQuote:
        return PriceQuote(
            coin_id=orm.coin_id,
            symbol=orm.symbol,
            name=orm.name,
            current_price=to_decimal(orm.current_price),
            last_updated=to_aware(orm.last_updated),
            market_cap=to_decimal(orm.market_cap),
            volume_24h=to_decimal(orm.volume_24h),
            price_change_24h=to_decimal(orm.price_change_24h),
            price_change_percentage_24h=to_decimal(orm.price_change_percentage_24h),
        )
