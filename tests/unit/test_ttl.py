"""
Unit tests for the TTL resolver.

Tests cover:
- Conversion of cookie maxAge milliseconds to whole seconds
- Fallback to the default TTL for missing, zero, negative and non-numeric values
- Capping at the largest TTL Cassandra accepts
"""

import math

import pytest
from hypothesis import given, strategies as st

from config.settings import MAX_TTL
from session.ttl import resolve_ttl

DEFAULT_TTL = 86400


class TestResolveTtl:
    """Tests for resolve_ttl."""
    
    def test_max_age_in_milliseconds_becomes_seconds(self):
        assert resolve_ttl(10000, DEFAULT_TTL) == 10
    
    def test_rounds_half_up(self):
        assert resolve_ttl(1500, DEFAULT_TTL) == 2
        assert resolve_ttl(2500, DEFAULT_TTL) == 3
        assert resolve_ttl(1499, DEFAULT_TTL) == 1
    
    def test_float_max_age(self):
        assert resolve_ttl(3600000.0, DEFAULT_TTL) == 3600
    
    def test_zero_max_age_falls_back_to_default(self):
        """A zero maxAge must never write an immediately expiring row."""
        assert resolve_ttl(0, DEFAULT_TTL) == DEFAULT_TTL
    
    def test_missing_max_age_falls_back_to_default(self):
        assert resolve_ttl(None, DEFAULT_TTL) == DEFAULT_TTL
    
    def test_negative_max_age_falls_back_to_default(self):
        assert resolve_ttl(-5000, DEFAULT_TTL) == DEFAULT_TTL
    
    def test_sub_half_second_falls_back_to_default(self):
        assert resolve_ttl(400, DEFAULT_TTL) == DEFAULT_TTL
    
    @pytest.mark.parametrize("max_age", ["10000", "abc", [10000], {"ms": 1}, True, False])
    def test_non_numeric_max_age_falls_back_to_default(self, max_age):
        assert resolve_ttl(max_age, DEFAULT_TTL) == DEFAULT_TTL
    
    def test_long_max_age_is_capped(self):
        hundred_years_ms = 100 * 365 * 24 * 3600 * 1000
        
        assert resolve_ttl(hundred_years_ms, DEFAULT_TTL) == MAX_TTL
    
    def test_max_ttl_and_beyond_give_max_ttl(self):
        assert resolve_ttl(MAX_TTL * 1000, DEFAULT_TTL) == MAX_TTL
        assert resolve_ttl(1e300, DEFAULT_TTL) == MAX_TTL
    
    @pytest.mark.parametrize("max_age", [math.nan, math.inf, -math.inf])
    def test_non_finite_max_age_falls_back_to_default(self, max_age):
        assert resolve_ttl(max_age, DEFAULT_TTL) == DEFAULT_TTL
    
    def test_custom_default(self):
        assert resolve_ttl(None, 60) == 60
    
    @given(st.integers(min_value=500, max_value=10**12))
    def test_positive_max_age_gives_positive_seconds(self, max_age):
        ttl = resolve_ttl(max_age, DEFAULT_TTL)
        assert isinstance(ttl, int)
        assert 1 <= ttl <= MAX_TTL
        if max_age / 1000 < MAX_TTL:
            assert abs(ttl - max_age / 1000) <= 0.5
    
    @given(st.one_of(st.none(), st.integers(max_value=0), st.text()))
    def test_unusable_max_age_always_gives_default(self, max_age):
        assert resolve_ttl(max_age, DEFAULT_TTL) == DEFAULT_TTL
