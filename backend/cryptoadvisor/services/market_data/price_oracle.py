"""
Price Oracle

Resolves the current price of a symbol by walking an ordered list of quote
sources. The first source that produces a positive price wins; when every
source fails the oracle reports "no data" (None) rather than raising.
"""

import asyncio
import logging
from typing import Optional

from cryptoadvisor.core.config import settings
from cryptoadvisor.schemas.market import Quote
from cryptoadvisor.services.market_data.quote_sources import (
    QuoteSource,
    default_quote_sources,
)

logger = logging.getLogger(__name__)


class PriceOracle:
    """Fallback chain over quote sources."""

    def __init__(
        self,
        sources: Optional[list[QuoteSource]] = None,
        pause_seconds: Optional[float] = None,
    ):
        self.sources = sources if sources is not None else default_quote_sources()
        self.pause_seconds = (
            settings.quote_pause_seconds if pause_seconds is None else pause_seconds
        )

    async def get_quote(self, symbol: str) -> Optional[Quote]:
        """Return a quote from the first source that succeeds, or None."""
        symbol = symbol.strip().upper()
        failures: list[str] = []

        for source in self.sources:
            result = await source.fetch(symbol)
            if result.ok:
                logger.info(f"Got {symbol} price from {result.source}: ${result.quote.price:,.2f}")
                return result.quote
            if result.skipped:
                failures.append(f"{result.source} (skipped)")
            else:
                failures.append(result.source)

        logger.warning(f"All price sources failed for {symbol}: {', '.join(failures)}")
        return None

    async def get_quotes(self, symbols: list[str]) -> list[Quote]:
        """Fetch several symbols one after another. Symbols with no data are dropped."""
        quotes: list[Quote] = []
        for index, symbol in enumerate(symbols):
            if index > 0 and self.pause_seconds > 0:
                await asyncio.sleep(self.pause_seconds)
            quote = await self.get_quote(symbol)
            if quote is not None:
                quotes.append(quote)
        return quotes

    async def get_price(self, symbol: str) -> Optional[float]:
        """Current price only."""
        quote = await self.get_quote(symbol)
        return quote.price if quote else None

    async def test_connection(self) -> bool:
        """Whether a BTC quote resolves through the chain."""
        quote = await self.get_quote("BTC")
        if quote is None:
            logger.error("Price oracle connection test failed: no source returned BTC")
            return False
        logger.info(f"Price oracle connection test successful via {quote.source}")
        return True


# Singleton instance
_oracle_instance: Optional[PriceOracle] = None


def get_price_oracle() -> PriceOracle:
    """Get or create the price oracle."""
    global _oracle_instance
    if _oracle_instance is None:
        _oracle_instance = PriceOracle()
    return _oracle_instance
