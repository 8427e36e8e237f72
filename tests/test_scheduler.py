import logging

import pytest
from bson import ObjectId

from conftest import TODAY, booked_starts
from core.errors import NotFound, StoreTransientError, ValidationError
from db.database import APPOINTMENTS, TIMESLOTS
from models.appointment import AppointmentStatus
from repositories.timeslots import ProfessionalFilter
from schemas.appointments import BookingRequest, RescheduleRequest
from schemas.timeslots import TimeSlotCreate
from services.scheduler import Scheduler, new_booking_group_id


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def appointment_created(self, appointment):
        self.events.append(("created", appointment["_id"]))

    def status_changed(self, appointment, status):
        self.events.append(("status", status))

    def appointment_rescheduled(self, appointment):
        self.events.append(("rescheduled", appointment["_id"]))


def booking(salon, professional, **item):
    payload = {
        "salonId": str(salon["_id"]),
        "professionalId": str(professional["_id"]) if professional else None,
        "serviceName": "Haircut",
        "price": 2500,
        "date": "2025-03-10",
        "startTime": "10:00",
        "duration": "30 minutes",
    }
    payload.update(item)
    return BookingRequest.model_validate({"email": "jo@example.com", "appointments": [payload]})


@pytest.fixture
async def scheduler(db, professional):
    sched = Scheduler(db, notifier=RecordingNotifier())
    await sched.generate_horizon(7, today=TODAY)
    return sched


async def test_booking_reserves_covered_slots(scheduler, salon, professional):
    result = await scheduler.create_booking_request(booking(salon, professional))

    [appointment] = result.appointments
    assert appointment["endTime"] == "10:30"
    assert appointment["status"] == "pending"
    assert appointment["bookingGroupId"] == result.booking_group_id
    slots = await scheduler.list_slots(ProfessionalFilter.only(professional["_id"]), "2025-03-10")
    assert booked_starts(slots) == ["10:00", "10:05", "10:10", "10:15", "10:20", "10:25"]
    assert scheduler.notifier.events == [("created", appointment["_id"])]


async def test_booking_requires_contact(scheduler, salon, professional):
    request = booking(salon, professional)
    request.email = None
    with pytest.raises(ValidationError):
        await scheduler.create_booking_request(request)


async def test_booking_requires_line_items(scheduler):
    with pytest.raises(ValidationError):
        await scheduler.create_booking_request(BookingRequest(phone="+15550100", appointments=[]))


async def test_cross_midnight_booking_rejects_whole_batch(scheduler, salon, professional, db):
    request = BookingRequest.model_validate(
        {
            "email": "jo@example.com",
            "appointments": [
                booking(salon, professional).appointments[0].model_dump(by_alias=True),
                {**booking(salon, professional).appointments[0].model_dump(by_alias=True), "startTime": "23:50"},
            ],
        }
    )
    with pytest.raises(ValidationError):
        await scheduler.create_booking_request(request)
    assert await db[APPOINTMENTS].count_documents({}) == 0


async def test_booking_without_professional_reserves_nothing(scheduler, salon, db):
    result = await scheduler.create_booking_request(booking(salon, None))
    assert result.appointments[0]["professionalId"] is None
    assert await db[TIMESLOTS].count_documents({"isBooked": True}) == 0


async def test_shortfall_is_logged_not_raised(db, salon, professional, caplog):
    sched = Scheduler(db, notifier=RecordingNotifier())
    caplog.set_level(logging.WARNING, logger="services.scheduler")

    result = await sched.create_booking_request(booking(salon, professional))

    assert len(result.appointments) == 1
    assert any(r.getMessage() == "slots.reserve.shortfall" for r in caplog.records)


async def test_reservation_failure_keeps_appointment(scheduler, salon, professional, db, monkeypatch):
    async def unavailable(*args, **kwargs):
        raise StoreTransientError("Store unavailable: NetworkTimeout")

    monkeypatch.setattr(scheduler.slots, "reserve_range", unavailable)
    await scheduler.create_booking_request(booking(salon, professional))
    assert await db[APPOINTMENTS].count_documents({}) == 1


async def test_cancel_releases_slots(scheduler, salon, professional, db):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments

    updated = await scheduler.cancel(appointment["_id"])

    assert updated["status"] == "cancelled"
    assert await db[TIMESLOTS].count_documents({"isBooked": True}) == 0
    assert ("status", "cancelled") in scheduler.notifier.events


async def test_terminal_status_cannot_change(scheduler, salon, professional):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments
    await scheduler.update_status(appointment["_id"], AppointmentStatus.completed)

    with pytest.raises(ValidationError):
        await scheduler.update_status(appointment["_id"], AppointmentStatus.pending)
    with pytest.raises(ValidationError):
        await scheduler.cancel(appointment["_id"])


async def test_update_status_unknown_id(scheduler):
    with pytest.raises(NotFound):
        await scheduler.update_status(str(ObjectId()), AppointmentStatus.confirmed)
    with pytest.raises(NotFound):
        await scheduler.update_status("not-an-id", AppointmentStatus.confirmed)


async def test_delete_releases_then_removes(scheduler, salon, professional, db):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments

    await scheduler.delete(appointment["_id"])

    assert await db[APPOINTMENTS].count_documents({}) == 0
    assert await db[TIMESLOTS].count_documents({"isBooked": True}) == 0
    with pytest.raises(NotFound):
        await scheduler.delete(appointment["_id"])


async def test_reschedule_in_place_moves_reservation(scheduler, salon, professional, db):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments
    await scheduler.update_status(appointment["_id"], AppointmentStatus.confirmed)

    result = await scheduler.reschedule(
        appointment["_id"],
        RescheduleRequest(date="2025-03-10", start_time="11:00", end_time="11:30"),
    )

    assert result.old_appointment_deleted is False
    assert result.appointment["status"] == "confirmed"
    assert result.appointment["isRescheduled"] is True
    slots = await scheduler.list_slots(ProfessionalFilter.only(professional["_id"]), "2025-03-10")
    assert booked_starts(slots) == ["11:00", "11:05", "11:10", "11:15", "11:20", "11:25"]


async def test_reschedule_create_new_to_other_professional(scheduler, salon, professional, second_professional, db):
    await scheduler.generate_horizon(7, today=TODAY)
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments

    result = await scheduler.reschedule(
        appointment["_id"],
        RescheduleRequest(
            date="2025-03-11",
            start_time="14:00",
            end_time="14:15",
            professional_id=str(second_professional["_id"]),
            create_new=True,
        ),
    )

    moved = result.appointment
    assert result.old_appointment_deleted is True
    assert moved["_id"] != appointment["_id"]
    assert moved["originalAppointmentId"] == appointment["_id"]
    assert moved["professionalId"] == second_professional["_id"]
    assert moved["status"] == "pending"
    assert moved["services"] == appointment["services"]
    assert await db[APPOINTMENTS].find_one({"_id": appointment["_id"]}) is None
    assert await db[TIMESLOTS].count_documents({"professionalId": professional["_id"], "isBooked": True}) == 0
    assert await db[TIMESLOTS].count_documents(
        {"professionalId": second_professional["_id"], "date": "2025-03-11", "isBooked": True}
    ) == 3


async def test_reschedule_rejects_cross_midnight_and_terminal(scheduler, salon, professional):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments

    with pytest.raises(ValidationError):
        await scheduler.reschedule(
            appointment["_id"], RescheduleRequest(date="2025-03-10", start_time="23:30", end_time="00:15")
        )

    await scheduler.cancel(appointment["_id"])
    with pytest.raises(ValidationError):
        await scheduler.reschedule(
            appointment["_id"], RescheduleRequest(date="2025-03-11", start_time="10:00", end_time="10:30")
        )


async def test_reconcile_repairs_slot_cache(scheduler, salon, professional, db):
    [appointment] = (await scheduler.create_booking_request(booking(salon, professional))).appointments
    # simulate a crash between the two writes plus a stray booked flag
    await db[TIMESLOTS].update_many({"startTime": "10:00"}, {"$set": {"isBooked": False}})
    await db[TIMESLOTS].update_one(
        {"professionalId": professional["_id"], "date": "2025-03-10", "startTime": "15:00"},
        {"$set": {"isBooked": True}},
    )

    totals = await scheduler.reconcile_slots(7, today=TODAY)

    assert totals == {"professionals": 1, "booked": 1, "freed": 1}
    slots = await scheduler.list_slots(ProfessionalFilter.only(professional["_id"]), "2025-03-10")
    assert booked_starts(slots) == ["10:00", "10:05", "10:10", "10:15", "10:20", "10:25"]
    assert await scheduler.reconcile_slots(7, today=TODAY) == {"professionals": 1, "booked": 0, "freed": 0}


async def test_group_lookup(scheduler, salon, professional):
    result = await scheduler.create_booking_request(booking(salon, professional))
    assert [a["_id"] for a in await scheduler.find_group(result.booking_group_id)] == [
        result.appointments[0]["_id"]
    ]
    with pytest.raises(NotFound):
        await scheduler.find_group(new_booking_group_id())


async def test_create_slot_enforces_width_and_uniqueness(scheduler, salon, professional):
    payload = dict(salon_id=salon["_id"], professional_id=professional["_id"], date="2025-04-01")
    slot = await scheduler.create_slot(TimeSlotCreate(start_time="08:00", end_time="08:05", **payload))
    assert slot["isBooked"] is False

    with pytest.raises(ValidationError):
        await scheduler.create_slot(TimeSlotCreate(start_time="08:00", end_time="08:05", **payload))
    with pytest.raises(ValidationError):
        await scheduler.create_slot(TimeSlotCreate(start_time="08:00", end_time="08:30", **payload))


async def test_set_slot_booked(scheduler, professional, db):
    slot = await db[TIMESLOTS].find_one({"professionalId": professional["_id"], "startTime": "12:00"})
    updated = await scheduler.set_slot_booked(str(slot["_id"]), True)
    assert updated["isBooked"] is True
    with pytest.raises(NotFound):
        await scheduler.set_slot_booked(str(ObjectId()), True)
