"""
Fight data storage collaborator.

FightDataRepository is the async lookup interface the analysis core consumes.
DataFrameFightRepository is an in-memory implementation backed by pandas
DataFrames, loadable from the fighter and fight CSV exports.

Supported fight layouts:
- storage layout: Winner, Loser, Method, Date, WeightClass
- ufcstats per-fighter layout: Fighter, Opponent, Outcome (W/L), Method, Date
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from ..utils.logging_config import LookupFailedError
from .models import FighterProfile, FightRecord, WinsAndLosses
from .stat_parser import build_fighter_profile, parse_date

logger = logging.getLogger(__name__)

FIGHT_COLUMNS = ['winner', 'loser', 'method', 'date', 'weight_class']


class FightDataRepository(ABC):
    """
    Abstract storage lookup used by the analysis core.

    Implementations raise LookupFailedError when the backing store fails.
    A fighter that simply does not exist is not a failure: stats come back
    as None and histories as empty lists.
    """

    @abstractmethod
    async def get_fighter_stats(self, name: str) -> Optional[FighterProfile]:
        pass

    @abstractmethod
    async def get_fight_history(self, name: str) -> List[FightRecord]:
        """All fights involving name, most recent first"""
        pass

    @abstractmethod
    async def get_wins_and_losses(self, name: str) -> WinsAndLosses:
        pass

    @abstractmethod
    async def find_fighters_by_win_method(self, keywords: Iterable[str], exclude: Iterable[str] = (),
                                          min_wins: int = 2, limit: int = 5) -> List[str]:
        """
        Fighters with at least min_wins wins whose method contains any keyword.

        Args:
            keywords: Case-insensitive method substrings
            exclude: Fighter names to leave out
            min_wins: Minimum number of qualifying wins
            limit: Maximum number of names returned
        """
        pass


def _sort_recent_first(records: List[FightRecord]) -> List[FightRecord]:
    dated = sorted((r for r in records if r.date is not None), key=lambda r: r.date, reverse=True)
    undated = [r for r in records if r.date is None]
    return dated + undated


class DataFrameFightRepository(FightDataRepository):
    """In-memory repository over fighter and fight DataFrames"""

    def __init__(self, fighters: pd.DataFrame, fights: pd.DataFrame):
        self._fighters = self._index_fighters(fighters)
        self._fights = self._normalize_fights(fights)
        logger.info(f"Loaded repository with {len(self._fighters)} fighters and {len(self._fights)} fights")

    @classmethod
    def from_csv(cls, fighters_path: Union[str, Path], fights_path: Union[str, Path]) -> 'DataFrameFightRepository':
        try:
            fighters = pd.read_csv(fighters_path)
            fights = pd.read_csv(fights_path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise LookupFailedError(
                f"Could not load fight data: {e}",
                source='csv',
                context={'fighters_path': str(fighters_path), 'fights_path': str(fights_path)}
            ) from e
        return cls(fighters, fights)

    @staticmethod
    def _index_fighters(fighters: pd.DataFrame) -> Dict[str, dict]:
        name_column = next((c for c in ('Name', 'name', 'fighter_name') if c in fighters.columns), None)
        if name_column is None:
            raise ValueError("Fighter data requires a Name column")

        index = {}
        for row in fighters.to_dict(orient='records'):
            name = row.get(name_column)
            if isinstance(name, str) and name.strip():
                index[name.strip().lower()] = row
        return index

    @staticmethod
    def _normalize_fights(fights: pd.DataFrame) -> pd.DataFrame:
        df = fights.copy()

        if 'Winner' in df.columns and 'Loser' in df.columns:
            df = df.rename(columns={'Winner': 'winner', 'Loser': 'loser'})
        elif {'Fighter', 'Opponent', 'Outcome'}.issubset(df.columns):
            outcome = df['Outcome'].astype(str).str.strip().str.upper()
            df = df[outcome.isin(['W', 'L'])].copy()
            won = outcome.loc[df.index] == 'W'
            df['winner'] = df['Fighter'].where(won, df['Opponent'])
            df['loser'] = df['Opponent'].where(won, df['Fighter'])
        elif not {'winner', 'loser'}.issubset(df.columns):
            raise ValueError("Fight data requires Winner/Loser or Fighter/Opponent/Outcome columns")

        df = df.rename(columns={'Method': 'method', 'Date': 'date',
                                'WeightClass': 'weight_class', 'Weight Class': 'weight_class'})
        for column in ('method', 'date', 'weight_class'):
            if column not in df.columns:
                df[column] = None

        df = df.dropna(subset=['winner', 'loser'])
        df['winner'] = df['winner'].astype(str).str.strip()
        df['loser'] = df['loser'].astype(str).str.strip()
        df['method'] = df['method'].fillna('').astype(str)
        df['date'] = df['date'].map(parse_date)

        # Per-fighter exports list every bout twice
        df = df[FIGHT_COLUMNS].drop_duplicates(subset=['winner', 'loser', 'method', 'date'])
        return df.reset_index(drop=True)

    def _records(self, frame: pd.DataFrame) -> List[FightRecord]:
        return [
            FightRecord(
                winner=row.winner,
                loser=row.loser,
                method=row.method,
                date=row.date if isinstance(row.date, date) else None,
                weight_class=row.weight_class if isinstance(row.weight_class, str) else None,
            )
            for row in frame.itertuples(index=False)
        ]

    async def get_fighter_stats(self, name: str) -> Optional[FighterProfile]:
        raw = self._fighters.get(name.strip().lower())
        if raw is None:
            logger.debug(f"No stats stored for {name}")
            return None
        return build_fighter_profile(raw)

    async def get_fight_history(self, name: str) -> List[FightRecord]:
        mask = (self._fights['winner'] == name) | (self._fights['loser'] == name)
        return _sort_recent_first(self._records(self._fights[mask]))

    async def get_wins_and_losses(self, name: str) -> WinsAndLosses:
        wins = self._records(self._fights[self._fights['winner'] == name])
        losses = self._records(self._fights[self._fights['loser'] == name])
        return WinsAndLosses(wins=_sort_recent_first(wins), losses=_sort_recent_first(losses))

    async def find_fighters_by_win_method(self, keywords: Iterable[str], exclude: Iterable[str] = (),
                                          min_wins: int = 2, limit: int = 5) -> List[str]:
        keywords = [k.lower() for k in keywords if k]
        if not keywords or limit <= 0:
            return []

        pattern = '|'.join(re.escape(k) for k in keywords)
        matches = self._fights['method'].str.lower().str.contains(pattern, regex=True, na=False)
        qualifying = self._fights.loc[matches & ~self._fights['winner'].isin(list(exclude)), 'winner']

        counts = qualifying.value_counts()
        counts = counts[counts >= min_wins]
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [name for name, _ in ordered[:limit]]

    def fighter_names(self) -> List[str]:
        return [row.get('Name', row.get('name', row.get('fighter_name'))) for row in self._fighters.values()]
