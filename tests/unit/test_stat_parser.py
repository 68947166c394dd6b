"""
Unit tests for raw fighter statistic parsing.
"""

from datetime import date, datetime

import numpy as np
import pytest

from ufc_edge.data.models import FightOddsQuote, FightPrediction, Stance, same_fighter
from ufc_edge.data.stat_parser import (
    build_fighter_profile,
    is_missing,
    parse_date,
    parse_height,
    parse_percent,
    parse_rate,
    parse_reach,
    parse_stance,
    parse_timestamp,
    parse_weight,
)
from ufc_edge.utils.logging_config import MalformedInputError


class TestPhysicalParsers:
    """Height, reach and weight conversion"""

    @pytest.mark.parametrize("raw,expected", [
        ('6\'2"', 74),
        ('6\' 4"', 76),
        ("5' 11\"", 71),
        ("5'5", 65),
    ])
    def test_height_to_inches(self, raw, expected):
        assert parse_height(raw) == expected

    @pytest.mark.parametrize("raw", [None, '', '--', 'tall', np.nan])
    def test_unparseable_height_is_zero(self, raw):
        assert parse_height(raw) == 0

    def test_reach(self):
        assert parse_reach('74"') == 74
        assert parse_reach('84.5"') == 84
        assert parse_reach(72) == 72

    def test_missing_reach_is_zero(self):
        assert parse_reach('--') == 0
        assert parse_reach(None) == 0
        assert parse_reach('unknown') == 0

    def test_weight(self):
        assert parse_weight('185 lbs.') == 185.0
        assert parse_weight('--') == 0.0


class TestStatParsers:
    """Percentages, rates, stances and dates"""

    def test_percent(self):
        assert parse_percent('58%') == 58.0
        assert parse_percent('0%') == 0.0
        assert parse_percent(None) == 0.0
        assert parse_percent('n/a') == 0.0

    def test_rate(self):
        assert parse_rate('4.29') == pytest.approx(4.29)
        assert parse_rate('abc') == 0.0

    def test_stance(self):
        assert parse_stance('Southpaw') is Stance.SOUTHPAW
        assert parse_stance(' switch ') is Stance.SWITCH
        assert parse_stance('Open Stance') is Stance.UNKNOWN
        assert parse_stance(None) is Stance.UNKNOWN

    def test_dates(self):
        assert parse_date('Jul 19, 1987') == date(1987, 7, 19)
        assert parse_date('2023-08-12') == date(2023, 8, 12)
        assert parse_date(datetime(2020, 1, 2, 3, 4)) == date(2020, 1, 2)
        assert parse_date('--') is None
        assert parse_date('not a date') is None

    def test_timestamp_drops_timezone(self):
        parsed = parse_timestamp('2024-05-25T10:00:00Z')
        assert parsed == datetime(2024, 5, 25, 10, 0, 0)
        assert parsed.tzinfo is None
        assert parse_timestamp(None) is None

    def test_missing_markers(self):
        for marker in ('', '--', 'null', 'None', 'NaN', 'n/a', None, np.nan):
            assert is_missing(marker)
        assert not is_missing(0)
        assert not is_missing('0')


class TestBuildFighterProfile:
    """Profiles from both storage rows and ufcstats CSV rows"""

    def test_csv_row(self, mock_fighter_data):
        row = mock_fighter_data.to_dict(orient='records')[0]
        profile = build_fighter_profile(row)

        assert profile.name == 'Jon Jones'
        assert profile.height == 76
        assert profile.reach == 84
        assert profile.weight == 205.0
        assert profile.stance is Stance.ORTHODOX
        assert profile.dob == date(1987, 7, 19)
        assert profile.slpm == pytest.approx(4.29)
        assert profile.str_def == 64.0
        assert profile.td_def == 95.0
        assert profile.sub_avg == pytest.approx(0.6)
        assert profile.last_updated is None

    def test_storage_row(self):
        profile = build_fighter_profile({
            'Name': 'Gus Grappler', 'Height': '5\' 10"', 'Reach': '70"', 'Stance': 'Southpaw',
            'SLPM': 2.0, 'StrDef': '50%', 'TDAvg': 3.0, 'TDDef': '70%', 'SubAvg': 1.5,
            'last_updated': '2024-01-01 00:00:00',
        })

        assert profile.height == 70
        assert profile.stance is Stance.SOUTHPAW
        assert profile.str_def == 50.0
        assert profile.td_avg == 3.0
        assert profile.last_updated == datetime(2024, 1, 1)

    def test_malformed_fields_fall_back_to_defaults(self):
        profile = build_fighter_profile({'Name': 'Opp One', 'Height': 'tall', 'SLpM': 'fast', 'Str. Def': '--'})

        assert profile.height == 0
        assert profile.slpm == 0.0
        assert profile.str_def == 0.0
        assert profile.stance is Stance.UNKNOWN

    def test_nameless_row_gives_none(self):
        assert build_fighter_profile({'Height': '6\' 0"'}) is None
        assert build_fighter_profile({'Name': '--'}) is None


class TestPredictionParsing:
    """Model prediction dicts and name matching"""

    def test_camel_and_snake_case(self):
        camel = FightPrediction.from_dict({'fighter1': 'Jon Jones', 'fighter2': 'Stipe Miocic',
                                           'predictedWinner': 'Jon Jones', 'confidence': '72.5',
                                           'probabilityBreakdown': {'ko_tko': 40}})
        snake = FightPrediction.from_dict({'fighter1': 'Jon Jones', 'fighter2': 'Stipe Miocic',
                                           'predicted_winner': 'Jon Jones', 'confidence': 72.5,
                                           'probability_breakdown': {'ko_tko': 40}})

        assert camel == snake
        assert camel.confidence == 72.5
        assert camel.probability_breakdown.ko_tko == 40

    def test_winner_takes_card_spelling(self):
        prediction = FightPrediction.from_dict({'fighter1': 'Jon Jones', 'fighter2': 'Stipe Miocic',
                                                'predictedWinner': ' stipe miocic', 'confidence': 55})
        assert prediction.predicted_winner == 'Stipe Miocic'

    @pytest.mark.parametrize("data,field_name", [
        ({'fighter1': 'Jon Jones', 'confidence': 60}, 'fighter2'),
        ({'fighter1': '', 'fighter2': 'Stipe Miocic'}, 'fighter1'),
        ({'fighter1': 'Jon Jones', 'fighter2': 'Stipe Miocic', 'confidence': '75%'}, 'confidence'),
        ({'fighter1': 'Jon Jones', 'fighter2': 'Stipe Miocic', 'probabilityBreakdown': {'ko_tko': 'high'}},
         'probabilityBreakdown'),
    ])
    def test_malformed_prediction(self, data, field_name):
        with pytest.raises(MalformedInputError) as exc_info:
            FightPrediction.from_dict(data)

        assert exc_info.value.field_name == field_name
        assert exc_info.value.error_code == 'MALFORMED_INPUT'

    def test_quote_lookup_ignores_missing_names(self):
        quote = FightOddsQuote('fanduel', 'Jon Jones', 'Stipe Miocic', fighter1_odds=-250, fighter2_odds=200)

        assert quote.odds_for('jon jones') == -250
        assert quote.odds_for(None) is None
        assert quote.odds_for('') is None
        assert quote.matches('STIPE MIOCIC', 'Jon Jones')
        assert not quote.matches('Jon Jones', 'Jon Jones')
        assert not same_fighter(None, None)
