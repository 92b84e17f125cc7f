"""Tests for appointment inserts and sample-data seeding."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.cloud import firestore

from app.schemas.appointments import AppointmentCreate, AppointmentStatus
from app.seeds.appointments import SAMPLE_APPOINTMENTS, build_sample_appointments
from app.services.appointment_service import AppointmentService


def _added(doc_id: str) -> tuple:
    """Return value of AsyncCollectionReference.add()."""
    doc_ref = MagicMock()
    doc_ref.id = doc_id
    return (MagicMock(), doc_ref)


@pytest.fixture
def firestore_client() -> MagicMock:
    """Mock async Firestore client."""
    client = MagicMock()
    client.collection.return_value.add = AsyncMock()
    return client


@pytest.fixture
def appointment() -> AppointmentCreate:
    """A single appointment."""
    return AppointmentCreate(
        user_id="u1",
        doctor="Dr. Sarah Johnson",
        specialty="Cardiology",
        date="2024-01-15",
        time="10:00 AM",
        type="Consultation",
        reason="Annual heart checkup",
        phone="+1234567890",
    )


def test_appointment_document_uses_document_field_names(appointment):
    """Test the document uses camelCase and plain status values."""
    document = appointment.to_document()

    assert document["userId"] == "u1"
    assert document["status"] == "Pending"
    assert document["notes"] is None
    assert "user_id" not in document


def test_build_sample_appointments_keeps_placeholders():
    """Test the samples keep their placeholder owners by default."""
    appointments = build_sample_appointments()

    assert len(appointments) == len(SAMPLE_APPOINTMENTS) == 3
    assert [a.user_id for a in appointments] == ["user123456789", "user123456789", "user987654321"]
    assert [a.status for a in appointments] == [
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CONFIRMED,
    ]


def test_build_sample_appointments_for_real_user():
    """Test every sample can be reassigned to one uid."""
    appointments = build_sample_appointments("real-uid")

    assert {a.user_id for a in appointments} == {"real-uid"}
    assert SAMPLE_APPOINTMENTS[0]["userId"] == "user123456789"


@pytest.mark.asyncio
async def test_create_appointment(firestore_client, appointment):
    """Test a single insert adds server timestamps and returns the new id."""
    add = firestore_client.collection.return_value.add
    add.return_value = _added("appt-1")

    appointment_id = await AppointmentService(firestore_client).create_appointment(appointment)

    assert appointment_id == "appt-1"
    firestore_client.collection.assert_called_with("appointments")
    document = add.call_args.args[0]
    assert document["doctor"] == "Dr. Sarah Johnson"
    assert document["createdAt"] is firestore.SERVER_TIMESTAMP
    assert document["updatedAt"] is firestore.SERVER_TIMESTAMP


@pytest.mark.asyncio
async def test_create_appointment_reraises(firestore_client, appointment):
    """Test a failed single insert is raised to the caller."""
    firestore_client.collection.return_value.add.side_effect = RuntimeError("permission denied")

    with pytest.raises(RuntimeError, match="permission denied"):
        await AppointmentService(firestore_client).create_appointment(appointment)


@pytest.mark.asyncio
async def test_seed_continues_past_failed_record(firestore_client):
    """Test one failing record does not stop the rest of the batch."""
    firestore_client.collection.return_value.add.side_effect = [
        _added("appt-1"),
        RuntimeError("deadline exceeded"),
        _added("appt-3"),
    ]

    result = await AppointmentService(firestore_client).seed_appointments(
        build_sample_appointments()
    )

    assert result.created_ids == ["appt-1", "appt-3"]
    assert result.created_count == 2
    assert result.failure_count == 1
    assert result.failures[0].index == 1
    assert result.failures[0].doctor == "Dr. Michael Chen"
    assert result.failures[0].error == "deadline exceeded"
    assert firestore_client.collection.return_value.add.await_count == 3


@pytest.mark.asyncio
async def test_seed_uses_configured_collection(firestore_client):
    """Test seeding writes to the collection the service was given."""
    firestore_client.collection.return_value.add.return_value = _added("appt-1")
    service = AppointmentService(firestore_client, collection="appointments_staging")

    result = await service.seed_appointments(build_sample_appointments("u1")[:1])

    firestore_client.collection.assert_called_with("appointments_staging")
    assert result.created_ids == ["appt-1"]
    assert result.failures == []
