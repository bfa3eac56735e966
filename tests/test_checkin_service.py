"""
Tests for on-site check-in
"""

import pytest

from wedding_manager.services.checkin_service import (
    AMBIGUOUS,
    CHECKED_IN,
    NOT_FOUND,
    CheckInResolver,
)
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.seating_service import TableAllocator

@pytest.fixture
def guest_list(open_uow):
    """Two guests called 李四, one 张三 seated at table 8"""
    with open_uow() as uow:
        TableAllocator(uow).upsert_table("8", seats=10)
        registry = GuestRegistry(uow)
        registry.create("张三", "13800000001", attending=False, responses={"attendees": "2"}, table_no="8")
        registry.create("李四", "13800000002")
        registry.create("李四", "13800000003")
    return open_uow

def test_checkin_by_name(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("张三", True, 2)
        assert result.status == CHECKED_IN
        assert result.checked_in
        assert result.guest_id == 1
        assert result.table_no == "8"
        assert result.actual_attendees == 2

    with guest_list(read_only=True) as uow:
        assert uow.guests.get(1).attending is True
        assert len(uow.checkins) == 1

def test_checkin_by_phone_with_spaces(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("138 0000 0003", True)
        assert result.status == CHECKED_IN
        assert result.guest_id == 3
        assert result.actual_attendees == 1

def test_unknown_guest_is_a_prompt(guest_list):
    """No match returns not_found and writes nothing"""
    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("未登记来宾", True)
        assert result.status == NOT_FOUND
        assert result.needs_confirmation is True
        assert "未在登记名单中找到" in result.message

    with guest_list(read_only=True) as uow:
        assert len(uow.guests) == 3
        assert len(uow.checkins) == 0

def test_duplicate_names_are_ambiguous(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("李四", True)
        assert result.status == AMBIGUOUS
        assert result.candidates == 2
        assert result.guest_id is None
        assert len(uow.checkins) == 0

    # the phone number disambiguates
    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("13800000002", True)
        assert result.status == CHECKED_IN
        assert result.guest_id == 2

@pytest.mark.parametrize("lookup,confirm,attendees", [
    ("张三", False, 1),
    ("", True, 1),
    ("   ", True, 1),
    ("张三", True, 0),
    ("张三", True, "two"),
])
def test_invalid_checkin_requests(guest_list, lookup, confirm, attendees):
    with pytest.raises(ValidationError):
        with guest_list() as uow:
            CheckInResolver(uow).resolve_lookup(lookup, confirm, attendees)

    with guest_list(read_only=True) as uow:
        assert len(uow.checkins) == 0

def test_repeat_checkin_keeps_one_record(guest_list):
    with guest_list() as uow:
        CheckInResolver(uow).resolve_lookup("张三", True, 2)

    with guest_list() as uow:
        result = CheckInResolver(uow).resolve_lookup("13800000001", True, 3)
        assert result.actual_attendees == 3

    with guest_list(read_only=True) as uow:
        assert len(uow.checkins) == 1
        assert uow.checkins.all()[0].actual_attendees == 3

def test_new_guest_checkin(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).check_in_new_guest("赵六", "13900000006", True, 3)
        assert result.status == CHECKED_IN
        assert result.table_no == "未分配"

    with guest_list(read_only=True) as uow:
        guest = uow.guests.get(result.guest_id)
        assert guest.name == "赵六"
        assert guest.attending is True
        assert guest.party_size == 3

def test_new_guest_checkin_with_known_phone_reuses_record(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).check_in_new_guest("张三", "13800000001", True, 1)
        assert result.guest_id == 1
        assert len(uow.guests) == 3
        # stored answers are kept when the phone already exists
        assert uow.guests.get(1).party_size == 2

def test_new_guest_checkin_requires_everything(guest_list):
    with guest_list() as uow:
        resolver = CheckInResolver(uow)
        with pytest.raises(ValidationError):
            resolver.check_in_new_guest("赵六", "", True)
        with pytest.raises(ValidationError):
            resolver.check_in_new_guest("", "13900000006", True)
        with pytest.raises(ValidationError):
            resolver.check_in_new_guest("赵六", "13900000006", False)

def test_manual_checkin_matches_existing_guest(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).manual_checkin("李四", phone="13800000003", actual_attendees=2)
        assert result.guest_id == 3
        assert len(uow.guests) == 3

def test_manual_checkin_creates_walk_in(guest_list):
    with guest_list() as uow:
        result = CheckInResolver(uow).manual_checkin("周七", table_no="8", actual_attendees=4)
        guest = uow.guests.get(result.guest_id)
        assert guest.phone == ""
        assert guest.table_no == "8"
        assert guest.party_size == 4
        assert result.table_no == "8"

def test_manual_checkin_by_name_without_phone(guest_list):
    """Without a phone the first guest with that exact name is checked in"""
    with guest_list() as uow:
        resolver = CheckInResolver(uow)
        result = resolver.manual_checkin("张三", actual_attendees=2)
        assert result.guest_id == 1
        assert result.table_no == "8"

        result = resolver.manual_checkin("李四")
        assert result.guest_id == 2
        assert len(uow.guests) == 3

    with guest_list(read_only=True) as uow:
        assert uow.guests.get(1).phone == "13800000001"
        assert uow.guests.get(1).attending is True
        assert uow.guests.get(2).phone == "13800000002"
        assert len(uow.checkins) == 2

def test_update_and_cancel_checkin(guest_list):
    with guest_list() as uow:
        resolver = CheckInResolver(uow)
        resolver.resolve_lookup("张三", True)
        assert resolver.update_checkin(1, 5).actual_attendees == 5
        with pytest.raises(ValidationError):
            resolver.update_checkin(1, 0)

    with guest_list() as uow:
        resolver = CheckInResolver(uow)
        resolver.cancel_checkin(1)
        with pytest.raises(NotFound):
            resolver.cancel_checkin(1)
        with pytest.raises(NotFound):
            resolver.update_checkin(2, 1)

    with guest_list(read_only=True) as uow:
        assert len(uow.checkins) == 0

def test_checkin_overview(guest_list):
    with guest_list() as uow:
        resolver = CheckInResolver(uow)
        resolver.resolve_lookup("张三", True, 2)
        resolver.resolve_lookup("13800000002", True, 1)
        overview = resolver.checkin_overview()
        assert overview["checked_in_guests"] == 2
        assert overview["actual_people"] == 3
        assert overview["expected_guests"] == 3
        assert overview["expected_people"] == 4
        assert {row["name"] for row in overview["checkins"]} == {"张三 携亲朋2位", "李四"}
