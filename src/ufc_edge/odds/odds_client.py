"""
Async UFC Odds API Client

Moneyline lookups against The Odds API v4:
- Shared aiohttp session with a configurable timeout
- Whole-sport responses cached under a single key for CacheConfig.odds_ttl
- Per-fight quote extraction for a chosen bookmaker
- Failures surface as OddsLookupError

Usage:
    async with OddsAPIClient(config.odds, cache=cache, cache_config=config.cache) as client:
        quote = await client.get_odds_for_fight("Jon Jones", "Stipe Miocic")
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import aiohttp

from ..data.models import FightOddsQuote, same_fighter
from ..data.stat_parser import parse_timestamp
from ..utils.cache import ODDS_KEY, TTLCache
from ..utils.logging_config import OddsLookupError
from ..utils.unified_config import CacheConfig, OddsConfig

logger = logging.getLogger(__name__)


class OddsAPIClient:
    """
    Async client for MMA moneyline odds.

    The session is created lazily; pass one in to share a connection pool
    (the client then leaves closing it to the owner).
    """

    def __init__(self, config: Optional[OddsConfig] = None, cache: Optional[TTLCache] = None,
                 cache_config: Optional[CacheConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.config = config or OddsConfig()
        self.cache_ttl = (cache_config or CacheConfig()).odds_ttl
        self.cache = cache if cache is not None else TTLCache(default_ttl=self.cache_ttl)
        self.session = session
        self._owns_session = session is None
        self.requests_remaining: Optional[int] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        if not self.session or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=10, ttl_dns_cache=300),
                timeout=timeout,
            )
            self._owns_session = True
            logger.debug("Created aiohttp session for odds lookups")

    async def close(self):
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
            logger.debug("Closed odds aiohttp session")

    @property
    def odds_url(self) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/v4/sports/{self.config.sport_key}/odds"

    def _request_params(self) -> Dict[str, str]:
        return {
            'apiKey': self.config.api_key,
            'regions': self.config.regions,
            'markets': self.config.markets,
            'oddsFormat': self.config.odds_format,
            'dateFormat': self.config.date_format,
        }

    def _update_remaining(self, headers):
        remaining = headers.get('x-requests-remaining')
        if remaining is None:
            return
        try:
            self.requests_remaining = int(remaining)
            logger.info(f"Odds API requests remaining: {self.requests_remaining}")
        except (TypeError, ValueError):
            logger.warning(f"Could not parse x-requests-remaining header: {remaining!r}")

    async def _request_odds(self) -> List[Dict[str, Any]]:
        if not self.config.api_key:
            raise OddsLookupError("No odds API key configured (set ODDS_API_KEY)")

        await self._ensure_session()
        logger.info(f"Fetching MMA odds (regions: {self.config.regions})")

        try:
            async with self.session.get(self.odds_url, params=self._request_params()) as response:
                self._update_remaining(response.headers)

                if response.status == 429:
                    raise OddsLookupError("Odds API rate limit exceeded", status=429)
                if response.status != 200:
                    error_text = await response.text()
                    raise OddsLookupError(f"Odds API error {response.status}: {error_text}",
                                          status=response.status)

                data = await response.json()
        except aiohttp.ClientError as e:
            raise OddsLookupError(f"Network error fetching odds: {e}") from e
        except asyncio.TimeoutError as e:
            raise OddsLookupError(f"Odds request timed out after {self.config.timeout}s") from e

        if not isinstance(data, list):
            raise OddsLookupError(f"Unexpected odds payload type: {type(data).__name__}")

        logger.info(f"Fetched odds for {len(data)} MMA events")
        return data

    async def fetch_mma_odds(self) -> List[Dict[str, Any]]:
        """All upcoming MMA events with bookmaker markets; served from cache for the configured odds TTL"""
        return await self.cache.get_or_load(ODDS_KEY, self._request_odds, ttl=self.cache_ttl)

    @staticmethod
    def parse_fight_odds(events: Iterable[Dict[str, Any]], fighter1: str, fighter2: str,
                         bookmaker: str) -> Optional[FightOddsQuote]:
        """Extract one bookmaker's moneyline for a pairing (either order); None when unpriced"""
        for event in events:
            home, away = event.get('home_team'), event.get('away_team')
            paired = ((same_fighter(home, fighter1) and same_fighter(away, fighter2))
                      or (same_fighter(home, fighter2) and same_fighter(away, fighter1)))
            if not paired:
                continue

            book = next((b for b in event.get('bookmakers') or [] if b.get('key') == bookmaker), None)
            markets = (book or {}).get('markets') or []
            if not markets or not markets[0].get('outcomes'):
                return None

            prices = {}
            for outcome in markets[0]['outcomes']:
                price = outcome.get('price')
                if price is not None:
                    prices[str(outcome.get('name', '')).strip().lower()] = int(price)

            return FightOddsQuote(
                bookmaker=bookmaker,
                fighter1=fighter1,
                fighter2=fighter2,
                fighter1_odds=prices.get(fighter1.strip().lower()),
                fighter2_odds=prices.get(fighter2.strip().lower()),
                last_update=parse_timestamp(book.get('last_update')),
            )

        return None

    async def get_odds_for_fight(self, fighter1: str, fighter2: str,
                                 bookmaker: Optional[str] = None) -> Optional[FightOddsQuote]:
        bookmaker = bookmaker or self.config.default_bookmaker
        events = await self.fetch_mma_odds()
        quote = self.parse_fight_odds(events, fighter1, fighter2, bookmaker)
        if quote is None:
            logger.debug(f"No {bookmaker} odds for {fighter1} vs {fighter2}")
        return quote

    async def get_quotes_for_card(self, fights: Sequence[Tuple[str, str]],
                                  bookmaker: Optional[str] = None) -> List[FightOddsQuote]:
        """Quotes for every priced fight on a card; the feed is fetched at most once"""
        bookmaker = bookmaker or self.config.default_bookmaker
        events = await self.fetch_mma_odds()
        quotes = [self.parse_fight_odds(events, fighter1, fighter2, bookmaker) for fighter1, fighter2 in fights]
        priced = [quote for quote in quotes if quote is not None]
        logger.info(f"Found {bookmaker} odds for {len(priced)}/{len(fights)} fights")
        return priced
