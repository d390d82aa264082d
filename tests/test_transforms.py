"""
Tests for the display transforms.

Run with: python -m pytest tests/test_transforms.py -v
"""

import re
from datetime import date

import pytest

from services.documents.transforms import (
    apply_transform,
    parse_amount,
    transform_client_type,
    transform_currency,
    transform_date,
    transform_percentage,
    transform_role,
    transform_yes_no,
)

CURRENCY_PATTERN = re.compile(r'^\$\d{1,3}(,\d{3})*\.\d{2}$')
PERCENTAGE_PATTERN = re.compile(r'^\d+\.\d%$')


class TestCurrency:

    @pytest.mark.parametrize('value,expected', [
        (350000, '$350,000.00'),
        ('350000', '$350,000.00'),
        ('$350,000', '$350,000.00'),
        ('1234.5', '$1,234.50'),
        (0, '$0.00'),
        (999.999, '$1,000.00'),
    ])
    def test_formats_numbers(self, value, expected):
        assert transform_currency(value) == expected

    @pytest.mark.parametrize('value', ['', 'n/a', None, float('nan'), float('inf'), True])
    def test_unparseable_is_empty(self, value):
        assert transform_currency(value) == ''

    @pytest.mark.parametrize('value', [1, 12, 123456789, '7,500.1', 0.5])
    def test_output_shape(self, value):
        assert CURRENCY_PATTERN.match(transform_currency(value))


class TestPercentage:

    @pytest.mark.parametrize('value,expected', [
        (6, '6.0%'),
        ('3', '3.0%'),
        ('2.5%', '2.5%'),
        (2.75, '2.8%'),
    ])
    def test_formats_one_decimal(self, value, expected):
        assert transform_percentage(value) == expected

    def test_unparseable_is_empty(self):
        assert transform_percentage('abc') == ''
        assert transform_percentage(None) == ''

    @pytest.mark.parametrize('value', [0, 1, 10.05, '100'])
    def test_output_shape(self, value):
        assert PERCENTAGE_PATTERN.match(transform_percentage(value))


class TestDate:

    def test_iso_date_becomes_us(self):
        assert transform_date('2025-05-06') == '05/06/2025'

    def test_iso_datetime_becomes_us(self):
        assert transform_date('2025-05-06T00:00:00.000Z') == '05/06/2025'

    def test_us_date_unchanged(self):
        assert transform_date('05/06/2025') == '05/06/2025'

    def test_other_text_passes_through(self):
        assert transform_date('next Friday') == 'next Friday'

    def test_date_object(self):
        assert transform_date(date(2025, 1, 2)) == '01/02/2025'


class TestRole:

    @pytest.mark.parametrize('value,expected', [
        ('LISTING_AGENT', 'LISTING AGENT'),
        ('listingAgent', 'LISTING AGENT'),
        ('BUYERS_AGENT', 'BUYERS AGENT'),
        ('buyersagent', 'BUYERS AGENT'),
        ('DUAL_AGENT', 'DUAL AGENT'),
        ('broker', 'BROKER'),
    ])
    def test_labels(self, value, expected):
        assert transform_role(value) == expected


class TestClientType:

    @pytest.mark.parametrize('value,expected', [
        ('buyer', 'BUYER'),
        ('Buyers', 'BUYER'),
        ('SELLER', 'SELLER'),
        ('home sellers', 'SELLER'),
        ('tenant', 'TENANT'),
        (None, ''),
    ])
    def test_collapses_variants(self, value, expected):
        assert transform_client_type(value) == expected


class TestYesNo:

    @pytest.mark.parametrize('value,expected', [
        (True, 'YES'),
        (False, 'NO'),
        ('yes', 'YES'),
        ('true', 'YES'),
        ('N', 'NO'),
        ('', ''),
    ])
    def test_flags(self, value, expected):
        assert transform_yes_no(value) == expected


class TestRegistry:

    def test_parse_amount_is_unsigned(self):
        assert parse_amount(-5) == 5.0
        assert parse_amount('-5') == 5.0

    def test_unknown_transform_returns_trimmed_string(self):
        assert apply_transform('  hello ', 'does_not_exist') == 'hello'

    def test_no_transform(self):
        assert apply_transform(' 4321 ', None) == '4321'

    def test_none_value(self):
        assert apply_transform(None, 'currency') == ''
