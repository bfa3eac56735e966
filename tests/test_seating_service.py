"""
Tests for table allocation and seat capacity
"""

import pytest

from wedding_manager.services.errors import CapacityExceeded, NotFound, ValidationError
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.seating_service import TableAllocator, natural_key

@pytest.fixture
def seated_store(open_uow):
    """Tables 1 (2 seats), 2 (10 seats) and VIP (unlimited) with a few guests"""
    with open_uow() as uow:
        allocator = TableAllocator(uow)
        allocator.upsert_table("1", nickname="主桌", seats=2)
        allocator.upsert_table("2", seats=10)
        allocator.upsert_table("VIP", seats=0)

        registry = GuestRegistry(uow, allocator)
        registry.create("张三", "13800000001", responses={"attendees": "1"}, table_no="1")
        registry.create("李四", "13800000002", responses={"attendees": "3"}, table_no="2")
        registry.create("王五", "13800000003", responses={"attendees": "2"})
    return open_uow

def test_capacity_rejects_party_that_does_not_fit(seated_store):
    """Table 1 has 1 of 2 seats taken; a party of 2 must be refused"""
    with pytest.raises(CapacityExceeded) as exc_info:
        with seated_store() as uow:
            TableAllocator(uow).assign_guest(3, "1")

    assert exc_info.value.table_no == "1"
    assert exc_info.value.seats == 2
    assert exc_info.value.details["occupied"] == 1
    assert exc_info.value.details["requested"] == 2

    with seated_store(read_only=True) as uow:
        assert uow.guests.get(3).table_no == ""

def test_capacity_allows_exact_fit(seated_store):
    with seated_store() as uow:
        registry = GuestRegistry(uow)
        registry.update(3, responses={"attendees": "1"})
        guest = TableAllocator(uow).assign_guest(3, "1")
        assert guest.table_no == "1"

    with seated_store(read_only=True) as uow:
        assert TableAllocator(uow).occupied_seats("1") == 2

def test_guest_is_not_counted_against_itself(seated_store):
    """Re-validating a seated guest excludes its own party from the count"""
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        assert allocator.validate_table_assignment("1", 2, exclude_guest_id=1) == "1"
        with pytest.raises(CapacityExceeded):
            allocator.validate_table_assignment("1", 2)

def test_zero_seats_means_unlimited(seated_store):
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        for size in (5, 50, 500):
            assert allocator.validate_table_assignment("VIP", size) == "VIP"

def test_unknown_table_resolves_to_unassigned(seated_store):
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        assert allocator.validate_table_assignment("99", 4) == ""
        assert allocator.validate_table_assignment("", 4) == ""
        assert allocator.validate_table_assignment(None, 4) == ""
        assert allocator.assign_guest(2, "99").table_no == ""

def test_assign_unknown_guest(seated_store):
    with seated_store() as uow:
        with pytest.raises(NotFound):
            TableAllocator(uow).assign_guest(404, "1")

def test_upsert_table_matches_by_table_no(seated_store):
    """Saving an existing table_no updates that table instead of adding one"""
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        table = allocator.upsert_table("2", nickname="同学桌", seats=12, preference="靠窗")
        assert table.id == 2
        assert len(uow.tables) == 3

    with seated_store(read_only=True) as uow:
        table = TableAllocator(uow).by_table_no("2")
        assert table.nickname == "同学桌"
        assert table.seats == 12
        assert table.preference == "靠窗"

def test_upsert_table_rejects_bad_input(seated_store):
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        with pytest.raises(ValidationError):
            allocator.upsert_table("  ", seats=8)
        with pytest.raises(ValidationError):
            allocator.upsert_table("3", seats=-1)
        with pytest.raises(ValidationError):
            allocator.upsert_table("3", seats="eight")

def test_rename_cascades_to_guests(seated_store):
    with seated_store() as uow:
        table = TableAllocator(uow).rename_or_delete(1, "1A")
        assert table.table_no == "1A"
        assert table.nickname == "主桌"

    with seated_store(read_only=True) as uow:
        assert uow.guests.get(1).table_no == "1A"
        assert TableAllocator(uow).by_table_no("1") is None

def test_rename_onto_existing_table_is_rejected(seated_store):
    with pytest.raises(ValidationError):
        with seated_store() as uow:
            TableAllocator(uow).update_table(1, "2", seats=2)

    with seated_store(read_only=True) as uow:
        assert uow.tables.get(1).table_no == "1"
        assert uow.guests.get(1).table_no == "1"

def test_delete_unassigns_guests(seated_store):
    with seated_store() as uow:
        assert TableAllocator(uow).rename_or_delete(2, None) is None

    with seated_store(read_only=True) as uow:
        assert uow.tables.get(2) is None
        assert uow.guests.get(2).table_no == ""

def test_delete_unknown_table(seated_store):
    with seated_store() as uow:
        with pytest.raises(NotFound):
            TableAllocator(uow).delete_table(99)

def test_natural_sort_order():
    labels = ["10", "2", "VIP", "1", "A2", "A10"]
    assert sorted(labels, key=natural_key) == ["1", "2", "10", "A2", "A10", "VIP"]

def test_seating_chart(seated_store):
    with seated_store() as uow:
        allocator = TableAllocator(uow)
        allocator.upsert_table("10", seats=8)
        chart = {row["table_no"]: row for row in allocator.seating_chart()}
        assert list(chart) == ["1", "2", "10", "VIP"]

        assert chart["1"]["occupied"] == 1
        assert chart["1"]["available_seats"] == 1
        assert chart["2"]["guests"][0]["name"] == "李四 携亲朋3位"
        assert chart["VIP"]["available_seats"] is None

        assert [g.name for g in allocator.unassigned_guests()] == ["王五"]

def test_seat_cards_put_unassigned_last(seated_store):
    with seated_store() as uow:
        cards = TableAllocator(uow).seat_cards()
        assert [c["table_no"] for c in cards] == ["1", "2", "未分配"]
        assert cards[0]["nickname"] == "主桌"
        assert cards[2]["name"] == "王五 携亲朋2位"

def test_full_table_rejects_single_guest(open_uow):
    """Table 1 fully taken by a party of 2 refuses one more guest"""
    with open_uow() as uow:
        TableAllocator(uow).upsert_table("1", seats=2)
        registry = GuestRegistry(uow)
        registry.create("A", "13800000001", responses={"attendees": "2"}, table_no="1")
        registry.create("B", "13800000002", responses={"attendees": "1"})

    with pytest.raises(CapacityExceeded):
        with open_uow() as uow:
            TableAllocator(uow).assign_guest(2, "1")

    with open_uow(read_only=True) as uow:
        allocator = TableAllocator(uow)
        assert allocator.occupied_seats("1") == 2
        assert uow.guests.get(2).table_no == ""

def test_upsert_table_cannot_shrink_below_occupancy(open_uow):
    """Table 1 seats a party of 4; resizing it to 2 seats is refused"""
    with open_uow() as uow:
        TableAllocator(uow).upsert_table("1", seats=4)
        GuestRegistry(uow).create("张三", "13800000001", responses={"attendees": "4"}, table_no="1")

    with pytest.raises(CapacityExceeded) as exc_info:
        with open_uow() as uow:
            TableAllocator(uow).upsert_table("1", nickname="主桌", seats=2)

    assert exc_info.value.details["occupied"] == 4
    assert exc_info.value.seats == 2

    with open_uow() as uow:
        allocator = TableAllocator(uow)
        table = allocator.by_table_no("1")
        assert table.seats == 4
        assert table.nickname == ""
        # exact fit and unlimited are both fine
        assert allocator.upsert_table("1", seats=4).seats == 4
        assert allocator.upsert_table("1", seats=0).seats == 0

def test_update_table_cannot_shrink_below_occupancy(seated_store):
    """Table 2 seats a party of 3; a rename that also drops it to 2 seats changes nothing"""
    with pytest.raises(CapacityExceeded):
        with seated_store() as uow:
            TableAllocator(uow).update_table(2, "2B", seats=2)

    with seated_store(read_only=True) as uow:
        table = uow.tables.get(2)
        assert table.table_no == "2"
        assert table.seats == 10
        assert uow.guests.get(2).table_no == "2"
        assert TableAllocator(uow).occupied_seats("2") == 3

    with seated_store() as uow:
        assert TableAllocator(uow).update_table(2, "2B", seats=3).seats == 3
