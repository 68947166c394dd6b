"""
Pytest Configuration and Fixtures for UFC Edge Testing
======================================================

Shared fixtures for the UFC Edge test suite: mock fighter and fight data in
the ufcstats CSV layout, an in-memory repository over that data, a frozen
clock and market fixtures (predictions and bookmaker quotes).

The scenario fighters model a striker (Max Striker) against a submission
grappler (Gus Grappler). They share three opponents: the striker beat two
of them, the grappler one.

Usage:
    # Fixtures are automatically available in test functions
    @pytest.mark.asyncio
    async def test_analysis(scenario_repository):
        report = await CommonOpponentAnalyzer(scenario_repository).analyze('Max Striker', 'Gus Grappler')
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd
import pytest

from ufc_edge.data.models import FightOddsQuote, FightPrediction
from ufc_edge.data.repository import DataFrameFightRepository

# Configure logging for tests
logging.getLogger().setLevel(logging.WARNING)

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock callable frozen at FIXED_NOW"""
    return lambda: FIXED_NOW


@pytest.fixture
def mock_fighter_data():
    """Mock fighter data in the ufcstats CSV layout"""
    return pd.DataFrame({
        'Name': ['Jon Jones', 'Stipe Miocic', 'Alexandre Pantoja', 'Kai Kara-France'],
        'Height': ['6\' 4"', '6\' 4"', '5\' 5"', '5\' 5"'],
        'Weight': ['205 lbs.', '241 lbs.', '125 lbs.', '125 lbs.'],
        'Reach': ['84.5"', '80"', '67"', '66"'],
        'STANCE': ['Orthodox', 'Orthodox', 'Orthodox', 'Switch'],
        'DOB': ['Jul 19, 1987', 'Aug 19, 1982', 'Aug 16, 1990', 'Mar 26, 1993'],
        'SLpM': ['4.29', '4.55', '4.82', '6.39'],
        'Str. Acc.': ['58%', '52%', '52%', '44%'],
        'SApM': ['2.22', '3.09', '2.95', '4.66'],
        'Str. Def': ['64%', '59%', '59%', '62%'],
        'TD Avg.': ['2.06', '2.45', '1.93', '1.77'],
        'TD Acc.': ['43%', '32%', '44%', '39%'],
        'TD Def.': ['95%', '68%', '64%', '70%'],
        'Sub. Avg.': ['0.6', '0.2', '1.2', '0.7'],
    })


@pytest.fixture
def mock_fight_data():
    """Mock fight data in the ufcstats per-fighter layout"""
    return pd.DataFrame({
        'Fighter': ['Jon Jones', 'Alexandre Pantoja'],
        'Opponent': ['Stipe Miocic', 'Kai Kara-France'],
        'Event': ['UFC 309', 'UFC 290'],
        'Outcome': ['W', 'W'],
        'Method': ['KO/TKO - Spinning Back Kick', 'Submission - Rear Naked Choke'],
        'Date': ['Nov 16, 2024', 'Jul 08, 2023'],
    })


@pytest.fixture
def scenario_fighter_data():
    """Striker vs submission grappler, their shared opponents and style-pool fighters"""
    return pd.DataFrame({
        'Name': ['Max Striker', 'Gus Grappler', 'Sam Submitter', 'Kai Knockout', 'Opp One'],
        'Height': ['6\' 0"', '5\' 10"', '5\' 11"', '6\' 1"', '--'],
        'Weight': ['170 lbs.', '170 lbs.', '170 lbs.', '170 lbs.', '170 lbs.'],
        'Reach': ['74"', '70"', '72"', '76"', '--'],
        'STANCE': ['Orthodox', 'Southpaw', 'Orthodox', 'Switch', None],
        'DOB': ['Jan 10, 1994', 'May 22, 1991', 'Feb 02, 1995', 'Oct 30, 1992', '--'],
        'SLpM': ['5.0', '2.0', '2.8', '4.5', '3.1'],
        'Str. Acc.': ['52%', '41%', '45%', '50%', '--'],
        'SApM': ['3.10', '2.40', '2.90', '3.50', '--'],
        'Str. Def': ['60%', '50%', '55%', '58%', '--'],
        'TD Avg.': ['0.5', '3.0', '2.2', '0.3', '--'],
        'TD Acc.': ['30%', '48%', '40%', '20%', '--'],
        'TD Def.': ['80%', '70%', '65%', '75%', '--'],
        'Sub. Avg.': ['0.2', '1.5', '1.8', '0.0', '--'],
        'last_updated': ['2024-05-25T10:00:00Z', '2024-01-01T00:00:00Z', None, None, None],
    })


@pytest.fixture
def scenario_fight_data():
    """Bouts for the scenario fighters, one row per bout"""
    rows = [
        ('Max Striker', 'Opp One', 'W', 'KO/TKO - Punches', 'Jan 20, 2024'),
        ('Max Striker', 'Opp Two', 'W', 'KO/TKO - Punch', 'Jun 10, 2023'),
        ('Max Striker', 'Opp Three', 'L', 'Decision - Unanimous', 'Nov 05, 2022'),
        ('Max Striker', 'Sam Submitter', 'W', 'KO/TKO - Elbows', 'Apr 15, 2022'),
        ('Gus Grappler', 'Opp One', 'W', 'Submission - Rear Naked Choke', 'Feb 17, 2024'),
        ('Gus Grappler', 'Opp Two', 'L', 'Decision - Split', 'Aug 12, 2023'),
        ('Gus Grappler', 'Opp Three', 'L', 'KO/TKO - Punches', 'Mar 04, 2023'),
        ('Gus Grappler', 'Kai Knockout', 'L', 'KO/TKO - Head Kick', 'Sep 10, 2022'),
        ('Kai Knockout', 'Journeyman A', 'W', 'KO/TKO - Punches', 'Jan 15, 2022'),
        ('Sam Submitter', 'Journeyman A', 'W', 'Submission - Armbar', 'Jul 09, 2021'),
        ('Sam Submitter', 'Journeyman B', 'W', 'Submission - Guillotine Choke', 'Nov 13, 2021'),
    ]
    return pd.DataFrame(rows, columns=['Fighter', 'Opponent', 'Outcome', 'Method', 'Date'])


@pytest.fixture
def scenario_repository(scenario_fighter_data, scenario_fight_data):
    return DataFrameFightRepository(scenario_fighter_data, scenario_fight_data)


@pytest.fixture
def mock_repository(mock_fighter_data, mock_fight_data):
    return DataFrameFightRepository(mock_fighter_data, mock_fight_data)


@pytest.fixture
def mock_predictions() -> List[Dict[str, Any]]:
    """Model predictions in the model's camelCase layout"""
    return [
        {
            'fighter1': 'Alpha', 'fighter2': 'Bravo', 'predictedWinner': 'Alpha',
            'confidence': 80, 'method': 'KO/TKO',
            'probabilityBreakdown': {'ko_tko': 70, 'submission': 10, 'decision': 20},
        },
        {
            'fighter1': 'Charlie', 'fighter2': 'Delta', 'predictedWinner': 'Charlie',
            'confidence': 78, 'method': 'Submission',
            'probabilityBreakdown': {'ko_tko': 20, 'submission': 65, 'decision': 15},
        },
        {
            'fighter1': 'Echo', 'fighter2': 'Foxtrot', 'predictedWinner': 'Echo',
            'confidence': 60, 'method': 'Decision',
            'probabilityBreakdown': {'ko_tko': 30, 'submission': 10, 'decision': 60},
        },
        {
            'fighter1': 'Golf', 'fighter2': 'Hotel', 'predictedWinner': 'Golf',
            'confidence': 70, 'method': 'Decision',
            'probabilityBreakdown': {'ko_tko': 20, 'submission': 20, 'decision': 60},
        },
    ]


@pytest.fixture
def parsed_predictions(mock_predictions) -> List[FightPrediction]:
    return [FightPrediction.from_dict(p) for p in mock_predictions]


@pytest.fixture
def mock_quotes() -> List[FightOddsQuote]:
    """FanDuel quotes; Golf vs Hotel is unpriced and Charlie's bout is quoted in reverse order"""
    return [
        FightOddsQuote('fanduel', 'Alpha', 'Bravo', fighter1_odds=100, fighter2_odds=-120),
        FightOddsQuote('fanduel', 'delta', 'charlie', fighter1_odds=100, fighter2_odds=-120),
        FightOddsQuote('fanduel', 'Echo', 'Foxtrot', fighter1_odds=-200, fighter2_odds=170),
    ]


@pytest.fixture
def mock_odds_events() -> List[Dict[str, Any]]:
    """The Odds API v4 h2h response layout"""
    return [
        {
            'id': 'evt1',
            'sport_key': 'mma_mixed_martial_arts',
            'commence_time': '2024-06-08T22:00:00Z',
            'home_team': 'Alpha',
            'away_team': 'Bravo',
            'bookmakers': [
                {
                    'key': 'fanduel',
                    'title': 'FanDuel',
                    'last_update': '2024-06-01T10:00:00Z',
                    'markets': [{'key': 'h2h', 'outcomes': [
                        {'name': 'Alpha', 'price': 100},
                        {'name': 'Bravo', 'price': -120},
                    ]}],
                },
                {
                    'key': 'draftkings',
                    'title': 'DraftKings',
                    'last_update': '2024-06-01T09:30:00Z',
                    'markets': [{'key': 'h2h', 'outcomes': [
                        {'name': 'Alpha', 'price': 105},
                        {'name': 'Bravo', 'price': -125},
                    ]}],
                },
            ],
        },
        {
            'id': 'evt2',
            'sport_key': 'mma_mixed_martial_arts',
            'commence_time': '2024-06-08T21:00:00Z',
            'home_team': 'Delta',
            'away_team': 'Charlie',
            'bookmakers': [
                {
                    'key': 'fanduel',
                    'title': 'FanDuel',
                    'last_update': '2024-06-01T10:00:00Z',
                    'markets': [{'key': 'h2h', 'outcomes': [
                        {'name': 'Delta', 'price': 100},
                        {'name': 'Charlie', 'price': -120},
                    ]}],
                },
            ],
        },
    ]
