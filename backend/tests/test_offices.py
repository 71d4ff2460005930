"""Unit tests for office geofence management."""

import pytest

from walkin.services import offices
from walkin.services.errors import NotFoundError, ValidationError

HQ = {"name": "본사", "address": "서울특별시 중구", "lat": 37.5665, "lng": 126.9780}


class TestCrud:
    def test_create_uses_default_radii(self, db):
        office = offices.create_office(db, **HQ)

        assert office.id
        assert office.check_in_radius == 1000
        assert office.check_out_radius == 3000
        assert office.is_active is True
        assert offices.get_office_by_id(db, office.id) is office

    def test_update_ignores_none(self, db):
        office = offices.create_office(db, **HQ)

        updated = offices.update_office(db, office.id, name="새 본사", lat=None, check_in_radius=500)

        assert updated.name == "새 본사"
        assert updated.lat == 37.5665
        assert updated.check_in_radius == 500

    def test_inactive_offices_are_not_active(self, db):
        active = offices.create_office(db, **HQ)
        inactive = offices.create_office(db, **{**HQ, "name": "폐쇄 지점", "is_active": False})

        assert [o.id for o in offices.get_active_offices(db)] == [active.id]
        assert {o.id for o in offices.get_all_offices(db)} == {active.id, inactive.id}

    def test_delete(self, db):
        office = offices.create_office(db, **HQ)
        offices.delete_office(db, office.id)
        assert offices.get_office_by_id(db, office.id) is None

    def test_missing_office(self, db):
        with pytest.raises(NotFoundError):
            offices.update_office(db, "missing", name="x")
        with pytest.raises(NotFoundError):
            offices.delete_office(db, "missing")


class TestCoordinates:
    @pytest.mark.parametrize(
        "fields",
        [
            {"lat": 91.0},
            {"lat": -90.5},
            {"lng": 180.1},
            {"check_in_radius": 0},
            {"check_out_radius": -5},
        ],
    )
    def test_invalid_values(self, db, fields):
        with pytest.raises(ValidationError):
            offices.create_office(db, **{**HQ, **fields})

    def test_update_is_checked_too(self, db):
        office = offices.create_office(db, **HQ)
        with pytest.raises(ValidationError):
            offices.update_office(db, office.id, lng=-200.0)


class TestDefaults:
    def test_seeds_when_empty(self, db):
        created = offices.initialize_default_offices(db)

        assert [o.name for o in created] == ["본사", "지사"]
        assert len(offices.get_active_offices(db)) == 2

    def test_noop_when_any_office_exists(self, db):
        offices.create_office(db, **{**HQ, "is_active": False})

        assert offices.initialize_default_offices(db) == []
        assert len(offices.get_all_offices(db)) == 1
