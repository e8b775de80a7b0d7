from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

import anyio
from sqlalchemy.exc import IntegrityError

from src.appointments.application.services.enrichment import DisplayNameResolver
from src.appointments.domain.entities.appointment import Appointment, AppointmentStatus
from src.appointments.domain.events.appointment_events import AppointmentCreated
from src.integrations.domain.gateways import PetDirectory, PetOwnershipVerifier, RoleVerifier, UserDirectory
from src.shared.domain.calendar import ensure_not_past, parse_date, parse_time, today
from src.shared.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    SchedulingConflictError,
    UnauthenticatedError,
)
from src.shared.infrastructure.messaging.event_bus import EventPublisher
from src.shared.logging import get_logger
from src.shared.roles import Role, is_staff
from src.shared.security import CallerIdentity

if TYPE_CHECKING:
    from src.unit_of_work import ClinicUnitOfWork

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
    appointment: Appointment
    pet_name: str
    client_name: str


@dataclass(frozen=True, slots=True)
class ClientAppointment:
    appointment: Appointment
    pet_name: str
    veterinarian_name: str


def _present(value: Optional[str]) -> Optional[str]:
    return value if value is not None and value.strip() else None


def parse_status(value: Optional[str]) -> Optional[AppointmentStatus]:
    if value in (None, ""):
        return None
    try:
        return AppointmentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AppointmentStatus)
        raise InvalidInputError(f"status must be one of: {allowed}", details={"field": "status"})


class AppointmentService:
    """
    Appointment workflow: booking (with remote ownership/role gates and the
    one-veterinarian-one-slot rule), the veterinarian's daily schedule,
    attention recording and the client's own list.
    """

    def __init__(
        self,
        uow: "ClinicUnitOfWork",
        *,
        users: UserDirectory,
        pets: PetDirectory,
        roles: RoleVerifier,
        ownership: PetOwnershipVerifier,
        events: EventPublisher,
        event_timeout: float = 5.0,
    ) -> None:
        self._uow = uow
        self._users = users
        self._pets = pets
        self._roles = roles
        self._ownership = ownership
        self._events = events
        self._event_timeout = event_timeout

    # ---------- booking ----------

    async def create_appointment(
        self,
        caller: Optional[CallerIdentity],
        *,
        date: Optional[str],
        time: Optional[str],
        reason: Optional[str],
        pet_id: Optional[int],
        veterinarian_id: Optional[int],
    ) -> Appointment:
        required = {"date": date, "time": time, "reason": reason, "pet_id": pet_id, "veterinarian_id": veterinarian_id}
        missing = [k for k, v in required.items() if v is None or (isinstance(v, str) and not v.strip())]
        if missing:
            raise InvalidInputError(
                "All fields are required: date, time, reason, pet_id, veterinarian_id",
                details={"missing": missing},
            )
        if caller is None or not caller.id or not caller.email:
            raise UnauthenticatedError("Could not identify the authenticated user")

        on = ensure_not_past(parse_date(date, "date"), "date")
        at = parse_time(time, "time")

        # remote gates; failures abort before any write
        if not await self._ownership.is_owned_by(pet_id, caller.email, caller.token):
            raise ForbiddenError("The pet does not belong to the authenticated client")
        if not await self._roles.is_veterinarian(veterinarian_id, caller.token):
            raise InvalidInputError("The selected user is not a valid veterinarian", details={"field": "veterinarian_id"})

        async with self._uow as uow:
            if await uow.appointments.find_slot_occupant(on, at, veterinarian_id) is not None:
                raise SchedulingConflictError(on.isoformat(), time)
            try:
                created = await uow.appointments.add(
                    Appointment.book(
                        date=on,
                        time=at,
                        reason=reason,
                        pet_id=pet_id,
                        client_id=caller.id,
                        veterinarian_id=veterinarian_id,
                    )
                )
                await uow.commit()
            except IntegrityError:
                # lost the race against a concurrent booking of the same slot
                raise SchedulingConflictError(on.isoformat(), time)

        logger.info(
            "appointment.created",
            appointment_id=created.id,
            veterinarian_id=veterinarian_id,
            client_id=caller.id,
        )
        await self._announce_created(created, caller)
        return created

    async def _announce_created(self, appointment: Appointment, caller: CallerIdentity) -> None:
        """Enrich and publish `appointment.created`; never fails or stalls the booking."""
        try:
            with anyio.fail_after(self._event_timeout):
                await self._publish_created(appointment, caller)
        except Exception as e:
            logger.warning(
                "appointment.event_publish_failed",
                appointment_id=appointment.id,
                error=str(e),
                error_type=e.__class__.__name__,
            )

    async def _publish_created(self, appointment: Appointment, caller: CallerIdentity) -> None:
        names = DisplayNameResolver(self._users, self._pets, caller.token)
        vet = await names.user(appointment.veterinarian_id)
        client = await names.user(caller.id)
        vet_email = vet.map(lambda u: u.email).or_else(None)
        client_email = client.map(lambda u: u.email).or_else(None) or caller.email
        if not vet_email or not client_email:
            logger.warning("appointment.event_skipped", appointment_id=appointment.id, reason="email_unresolved")
            return

        event = AppointmentCreated(
            appointment_id=appointment.id,
            date=appointment.date,
            time=appointment.time,
            reason=appointment.reason,
            pet_id=appointment.pet_id,
            pet_name=(await names.pet(appointment.pet_id)).map(lambda p: p.name).or_else(None),
            client_id=caller.id,
            client_name=client.map(lambda u: u.name).or_else(None),
            client_email=client_email,
            veterinarian_id=appointment.veterinarian_id,
            veterinarian_name=vet.map(lambda u: u.name).or_else(None),
            veterinarian_email=vet_email,
        )
        await self._events.publish(AppointmentCreated.name, event.to_payload())

    # ---------- reads ----------

    async def get_veterinarian_schedule(self, caller: CallerIdentity, date: Optional[str] = None) -> List[ScheduleEntry]:
        if not caller.has_role(Role.VETERINARIAN):
            raise ForbiddenError("Only veterinarians can view a schedule")
        on = parse_date(date, "date") if date else today()

        async with self._uow as uow:
            appointments = await uow.appointments.list_for_veterinarian_on(caller.id, on)

        names = DisplayNameResolver(self._users, self._pets, caller.token)
        return [
            ScheduleEntry(
                appointment=a,
                pet_name=await names.pet_name(a.pet_id),
                client_name=await names.user_name(a.client_id),
            )
            for a in appointments
        ]

    async def get_client_appointments(
        self,
        caller: CallerIdentity,
        *,
        status: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[ClientAppointment]:
        wanted = parse_status(status)
        async with self._uow as uow:
            appointments = await uow.appointments.list_for_client(
                caller.id, status=wanted, include_inactive=include_inactive
            )

        names = DisplayNameResolver(self._users, self._pets, caller.token)
        return [
            ClientAppointment(
                appointment=a,
                pet_name=await names.pet_name(a.pet_id),
                veterinarian_name=await names.user_name(a.veterinarian_id),
            )
            for a in appointments
        ]

    async def get_appointment(self, appointment_id: int, caller: CallerIdentity) -> Appointment:
        async with self._uow as uow:
            appointment = await self._require(uow, appointment_id)
        if not (
            is_staff(caller.role)
            or appointment.client_id == caller.id
            or appointment.veterinarian_id == caller.id
        ):
            raise ForbiddenError("You do not have access to this appointment")
        return appointment

    # ---------- transitions ----------

    async def update_attention(
        self,
        appointment_id: int,
        caller: CallerIdentity,
        *,
        procedure: Optional[str] = None,
        diagnosis: Optional[str] = None,
        indications: Optional[str] = None,
    ) -> Appointment:
        # blank text counts as not provided
        procedure, diagnosis, indications = (_present(v) for v in (procedure, diagnosis, indications))
        if procedure is None and diagnosis is None and indications is None:
            raise InvalidInputError("Provide at least one of: procedure, diagnosis, indications")

        async with self._uow as uow:
            appointment = await self._require(uow, appointment_id)
            # a cancelled appointment is rejected before any role check
            appointment.record_attention(procedure=procedure, diagnosis=diagnosis, indications=indications)
            if not caller.has_role(Role.VETERINARIAN):
                raise ForbiddenError("Only veterinarians can record attention")
            if appointment.veterinarian_id != caller.id:
                raise ForbiddenError("This appointment is assigned to another veterinarian")
            updated = await uow.appointments.update(appointment)
            await uow.commit()

        logger.info("appointment.attended", appointment_id=appointment_id, veterinarian_id=caller.id)
        return updated

    async def confirm_appointment(self, appointment_id: int, caller: CallerIdentity) -> Appointment:
        async with self._uow as uow:
            appointment = await self._require(uow, appointment_id)
            if not (is_staff(caller.role) or appointment.veterinarian_id == caller.id):
                raise ForbiddenError("Only the assigned veterinarian or staff can confirm an appointment")
            appointment.confirm()
            updated = await uow.appointments.update(appointment)
            await uow.commit()
        logger.info("appointment.confirmed", appointment_id=appointment_id, by=caller.id)
        return updated

    async def cancel_appointment(self, appointment_id: int, caller: CallerIdentity) -> Appointment:
        async with self._uow as uow:
            appointment = await self._require(uow, appointment_id)
            if not (
                is_staff(caller.role)
                or appointment.client_id == caller.id
                or appointment.veterinarian_id == caller.id
            ):
                raise ForbiddenError("You cannot cancel this appointment")
            appointment.cancel()
            updated = await uow.appointments.update(appointment)
            await uow.commit()
        logger.info("appointment.cancelled", appointment_id=appointment_id, by=caller.id)
        return updated

    async def deactivate_appointment(self, appointment_id: int, caller: CallerIdentity) -> None:
        if not caller.has_role(Role.ADMIN):
            raise ForbiddenError("Only administrators can deactivate appointments")
        async with self._uow as uow:
            if not await uow.appointments.soft_delete(appointment_id):
                raise NotFoundError("Appointment not found")
            await uow.commit()
        logger.info("appointment.deactivated", appointment_id=appointment_id, by=caller.id)

    @staticmethod
    async def _require(uow: "ClinicUnitOfWork", appointment_id: int) -> Appointment:
        appointment = await uow.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment
