"""Tests for the access level enumeration."""

import pytest

from app.db.models import AccessLevel, MANAGE_THRESHOLD
from app.services.errors import InvalidAccessLevel


class TestOrdering:
    def test_levels_are_ordered(self):
        assert (
            AccessLevel.GUEST
            < AccessLevel.REPORTER
            < AccessLevel.DEVELOPER
            < AccessLevel.MASTER
            < AccessLevel.OWNER
        )

    def test_manage_threshold_is_master(self):
        assert MANAGE_THRESHOLD == AccessLevel.MASTER

    def test_options_lists_every_level(self):
        assert AccessLevel.options() == {
            "Guest": 10,
            "Reporter": 20,
            "Developer": 30,
            "Master": 40,
            "Owner": 50,
        }


class TestParse:
    @pytest.mark.parametrize("value", [10, "20", " 30 ", AccessLevel.OWNER])
    def test_accepts_known_values(self, value):
        assert AccessLevel.parse(value) in AccessLevel

    @pytest.mark.parametrize("value", [1234, 0, -10, "abc", "", None, True, 45])
    def test_rejects_unknown_values(self, value):
        with pytest.raises(InvalidAccessLevel):
            AccessLevel.parse(value)

    def test_invalid_access_level_is_422(self):
        assert InvalidAccessLevel.status_code == 422
