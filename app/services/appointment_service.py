"""Appointment service for writing appointment documents to Firestore."""

from collections.abc import Iterable

import structlog
from google.cloud import firestore

from app.config import settings
from app.schemas.appointments import AppointmentCreate, SeedFailure, SeedResult

logger = structlog.get_logger(__name__)


class AppointmentService:
    """Service for appointment inserts and sample-data seeding."""

    def __init__(self, client: firestore.AsyncClient, collection: str | None = None):
        """Initialize service with an async Firestore client."""
        self.client = client
        self.collection = collection or settings.firestore_appointments_collection

    async def _add(self, appointment: AppointmentCreate) -> str:
        document = {
            **appointment.to_document(),
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        _, doc_ref = await self.client.collection(self.collection).add(document)
        return doc_ref.id

    async def create_appointment(self, appointment: AppointmentCreate) -> str:
        """
        Insert a single appointment.

        Args:
            appointment: Appointment fields; timestamps are assigned by the server

        Returns:
            ID of the new document

        Raises:
            Exception: Whatever the Firestore client raised, after logging it
        """
        try:
            appointment_id = await self._add(appointment)
        except Exception as e:
            logger.error(
                "appointment_create_failed",
                error=str(e),
                user_id=appointment.user_id,
                doctor=appointment.doctor,
            )
            raise

        logger.info(
            "appointment_created",
            appointment_id=appointment_id,
            user_id=appointment.user_id,
        )
        return appointment_id

    async def seed_appointments(self, appointments: Iterable[AppointmentCreate]) -> SeedResult:
        """
        Insert a batch of sample appointments one by one.

        A failed record is logged and skipped; the rest of the batch is still
        inserted. There is no retry and no transaction across records.

        Returns:
            IDs of the inserted records and the failures
        """
        result = SeedResult()

        for index, appointment in enumerate(appointments):
            try:
                appointment_id = await self._add(appointment)
            except Exception as e:
                logger.error(
                    "sample_appointment_failed",
                    index=index,
                    doctor=appointment.doctor,
                    error=str(e),
                )
                result.failures.append(
                    SeedFailure(index=index, doctor=appointment.doctor, error=str(e))
                )
                continue

            logger.info(
                "sample_appointment_created",
                appointment_id=appointment_id,
                doctor=appointment.doctor,
                date=appointment.date,
                time=appointment.time,
                status=appointment.status.value,
            )
            result.created_ids.append(appointment_id)

        logger.info(
            "appointment_seeding_completed",
            created=result.created_count,
            failed=result.failure_count,
        )
        return result
