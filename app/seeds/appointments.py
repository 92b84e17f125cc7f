"""Sample appointments for a fresh Firestore project."""

from app.schemas.appointments import AppointmentCreate, AppointmentStatus

# Placeholder uids; pass a real Firebase uid to build_sample_appointments()
SAMPLE_APPOINTMENTS: list[dict] = [
    {
        "userId": "user123456789",
        "doctor": "Dr. Sarah Johnson",
        "specialty": "Cardiology",
        "date": "2024-01-15",
        "time": "10:00 AM",
        "type": "Consultation",
        "reason": "Annual heart checkup",
        "phone": "+1234567890",
        "status": AppointmentStatus.PENDING,
        "notes": "Patient requested morning appointment",
    },
    {
        "userId": "user123456789",
        "doctor": "Dr. Michael Chen",
        "specialty": "Dermatology",
        "date": "2024-01-20",
        "time": "02:30 PM",
        "type": "Follow-up",
        "reason": "Skin condition follow-up",
        "phone": "+1234567890",
        "status": AppointmentStatus.CONFIRMED,
        "notes": "Follow-up for previous treatment",
    },
    {
        "userId": "user987654321",
        "doctor": "Dr. Emily Rodriguez",
        "specialty": "Pediatrics",
        "date": "2024-01-18",
        "time": "09:00 AM",
        "type": "Routine Check-up",
        "reason": "Child wellness visit",
        "phone": "+1987654321",
        "status": AppointmentStatus.CONFIRMED,
        "notes": "Annual pediatric checkup",
    },
]


def build_sample_appointments(user_id: str | None = None) -> list[AppointmentCreate]:
    """
    Build the sample appointments.

    Args:
        user_id: If given, every sample is assigned to this uid

    Returns:
        Appointment models ready to insert
    """
    appointments = []
    for sample in SAMPLE_APPOINTMENTS:
        data = dict(sample)
        if user_id:
            data["userId"] = user_id
        appointments.append(AppointmentCreate.model_validate(data))
    return appointments
