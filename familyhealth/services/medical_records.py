"""
Medical records: prescriptions, insurance, bills, documents, conditions and
appointments.

Prescriptions and conditions soft-delete; everything else is removed.
"""

from datetime import UTC, datetime
from typing import Any

from adapters.legacy.schema import (
    LegacyPrescription,
    legacy_prescription_changes,
    prescription_from_legacy,
    prescription_to_legacy,
)
from familyhealth.domain.models import (
    Appointment,
    AppointmentStatus,
    BillStatus,
    InsurancePolicy,
    MedicalBill,
    MedicalCondition,
    MedicalDocument,
    Prescription,
)
from familyhealth.errors import ServiceError
from familyhealth.security import sanitize_for_log, validate_id, validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.store import TableQuery

PRESCRIPTIONS = "prescriptions"
INSURANCE_POLICIES = "insurance_policies"
MEDICAL_BILLS = "medical_bills"
DOCUMENTS = "documents"
MEDICAL_CONDITIONS = "medical_conditions"
APPOINTMENTS = "appointments"

UPCOMING_APPOINTMENTS_LIMIT = 10


class MedicalRecordsService(BaseService):
    component = "medical_records_service"

    def _owned(self, name: str, uid: str, family_member_id: str | None) -> TableQuery:
        query = self.table(name).select().eq("user_id", uid)
        if family_member_id:
            query = query.eq("family_member_id", validate_id(family_member_id))
        return query

    # -- prescriptions -----------------------------------------------------------

    async def get_prescriptions(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[Prescription]:
        """Active prescriptions, newest first."""
        with self.failures("get prescriptions"):
            uid = validate_user_id(user_id)
            query = self._owned(PRESCRIPTIONS, uid, family_member_id).eq("is_active", True)
            result = await query.order("created_at", ascending=False).execute()
            return self.parse(Prescription, result.unwrap())

    async def add_prescription(self, user_id: str, prescription: Prescription) -> Prescription:
        with self.failures("add prescription"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(PRESCRIPTIONS, {**prescription.to_row(), "user_id": uid})
            return Prescription.model_validate(row)

    async def update_prescription(
        self, user_id: str, prescription_id: str, changes: dict[str, Any]
    ) -> Prescription:
        with self.failures("update prescription"):
            row = await self.update_one(
                PRESCRIPTIONS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(prescription_id),
            )
            return Prescription.model_validate(row)

    async def delete_prescription(self, user_id: str, prescription_id: str) -> None:
        with self.failures("delete prescription"):
            await self.delete_one(
                PRESCRIPTIONS,
                user_id=validate_user_id(user_id),
                record_id=validate_id(prescription_id),
                soft=True,
            )

    async def get_legacy_prescriptions(self, user_id: str) -> list[LegacyPrescription]:
        """Legacy-shaped listing; failures degrade to an empty list."""
        try:
            prescriptions = await self.get_prescriptions(user_id)
        except ServiceError as e:
            self.logger.error("get_legacy_prescriptions_failed", error=sanitize_for_log(e))
            return []
        return [prescription_to_legacy(p) for p in prescriptions]

    async def add_legacy_prescription(
        self, user_id: str, legacy: LegacyPrescription
    ) -> LegacyPrescription:
        created = await self.add_prescription(user_id, prescription_from_legacy(legacy))
        return prescription_to_legacy(created)

    async def update_legacy_prescription(
        self, user_id: str, prescription_id: str, changes: dict[str, Any]
    ) -> LegacyPrescription:
        """``changes`` uses legacy keys (``medicationName``, ``refillDate``...)."""
        updated = await self.update_prescription(
            user_id, prescription_id, legacy_prescription_changes(changes)
        )
        return prescription_to_legacy(updated)

    # -- insurance -----------------------------------------------------------------

    async def get_insurance_policies(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[InsurancePolicy]:
        with self.failures("get insurance policies"):
            uid = validate_user_id(user_id)
            query = self._owned(INSURANCE_POLICIES, uid, family_member_id)
            result = await query.order("created_at", ascending=False).execute()
            return self.parse(InsurancePolicy, result.unwrap())

    async def add_insurance_policy(self, user_id: str, policy: InsurancePolicy) -> InsurancePolicy:
        with self.failures("add insurance policy"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(INSURANCE_POLICIES, {**policy.to_row(), "user_id": uid})
            return InsurancePolicy.model_validate(row)

    async def update_insurance_policy(
        self, user_id: str, policy_id: str, changes: dict[str, Any]
    ) -> InsurancePolicy:
        with self.failures("update insurance policy"):
            row = await self.update_one(
                INSURANCE_POLICIES,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(policy_id),
            )
            return InsurancePolicy.model_validate(row)

    async def delete_insurance_policy(self, user_id: str, policy_id: str) -> None:
        with self.failures("delete insurance policy"):
            await self.delete_one(
                INSURANCE_POLICIES,
                user_id=validate_user_id(user_id),
                record_id=validate_id(policy_id),
            )

    # -- bills -----------------------------------------------------------------------

    async def get_medical_bills(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[MedicalBill]:
        with self.failures("get medical bills"):
            uid = validate_user_id(user_id)
            query = self._owned(MEDICAL_BILLS, uid, family_member_id)
            result = await query.order("service_date", ascending=False).execute()
            return self.parse(MedicalBill, result.unwrap())

    async def get_unpaid_bills(self, user_id: str) -> list[MedicalBill]:
        """Unpaid and pending bills, earliest due first."""
        with self.failures("get unpaid bills"):
            uid = validate_user_id(user_id)
            query = self._owned(MEDICAL_BILLS, uid, None).neq("status", BillStatus.PAID)
            result = await query.order("due_date").execute()
            return self.parse(MedicalBill, result.unwrap())

    async def add_medical_bill(self, user_id: str, bill: MedicalBill) -> MedicalBill:
        with self.failures("add medical bill"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(MEDICAL_BILLS, {**bill.to_row(), "user_id": uid})
            return MedicalBill.model_validate(row)

    async def update_medical_bill(
        self, user_id: str, bill_id: str, changes: dict[str, Any]
    ) -> MedicalBill:
        with self.failures("update medical bill"):
            row = await self.update_one(
                MEDICAL_BILLS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(bill_id),
            )
            return MedicalBill.model_validate(row)

    async def delete_medical_bill(self, user_id: str, bill_id: str) -> None:
        with self.failures("delete medical bill"):
            await self.delete_one(
                MEDICAL_BILLS, user_id=validate_user_id(user_id), record_id=validate_id(bill_id)
            )

    # -- documents -------------------------------------------------------------------

    async def get_documents(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[MedicalDocument]:
        with self.failures("get documents"):
            uid = validate_user_id(user_id)
            query = self._owned(DOCUMENTS, uid, family_member_id)
            result = await query.order("upload_date", ascending=False).execute()
            return self.parse(MedicalDocument, result.unwrap())

    async def add_document(self, user_id: str, document: MedicalDocument) -> MedicalDocument:
        with self.failures("add document"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(DOCUMENTS, {**document.to_row(), "user_id": uid})
            return MedicalDocument.model_validate(row)

    async def update_document(
        self, user_id: str, document_id: str, changes: dict[str, Any]
    ) -> MedicalDocument:
        """Replacing ``file_url`` with a different file bumps ``version``."""
        with self.failures("update document"):
            uid = validate_user_id(user_id)
            did = validate_id(document_id)
            current = await (
                self.table(DOCUMENTS).select().eq("user_id", uid).eq("id", did).single().execute()
            )
            existing = MedicalDocument.model_validate(current.unwrap())

            changes = dict(changes)
            new_url = changes.get("file_url")
            if new_url and new_url != existing.file_url:
                changes["version"] = existing.version + 1

            row = await self.update_one(DOCUMENTS, changes, user_id=uid, record_id=did)
            return MedicalDocument.model_validate(row)

    async def delete_document(self, user_id: str, document_id: str) -> None:
        with self.failures("delete document"):
            await self.delete_one(
                DOCUMENTS, user_id=validate_user_id(user_id), record_id=validate_id(document_id)
            )

    # -- conditions --------------------------------------------------------------------

    async def get_medical_conditions(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[MedicalCondition]:
        with self.failures("get medical conditions"):
            uid = validate_user_id(user_id)
            query = self._owned(MEDICAL_CONDITIONS, uid, family_member_id).eq("is_active", True)
            result = await query.order("created_at", ascending=False).execute()
            return self.parse(MedicalCondition, result.unwrap())

    async def add_medical_condition(
        self, user_id: str, condition: MedicalCondition
    ) -> MedicalCondition:
        with self.failures("add medical condition"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(MEDICAL_CONDITIONS, {**condition.to_row(), "user_id": uid})
            return MedicalCondition.model_validate(row)

    async def update_medical_condition(
        self, user_id: str, condition_id: str, changes: dict[str, Any]
    ) -> MedicalCondition:
        with self.failures("update medical condition"):
            row = await self.update_one(
                MEDICAL_CONDITIONS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(condition_id),
            )
            return MedicalCondition.model_validate(row)

    async def delete_medical_condition(self, user_id: str, condition_id: str) -> None:
        with self.failures("delete medical condition"):
            await self.delete_one(
                MEDICAL_CONDITIONS,
                user_id=validate_user_id(user_id),
                record_id=validate_id(condition_id),
                soft=True,
            )

    # -- appointments --------------------------------------------------------------------

    async def get_appointments(
        self, user_id: str, family_member_id: str | None = None
    ) -> list[Appointment]:
        with self.failures("get appointments"):
            uid = validate_user_id(user_id)
            query = self._owned(APPOINTMENTS, uid, family_member_id)
            result = await query.order("appointment_date").execute()
            return self.parse(Appointment, result.unwrap())

    async def get_upcoming_appointments(
        self, user_id: str, now: datetime | None = None
    ) -> list[Appointment]:
        """The next scheduled appointments from ``now`` on, soonest first."""
        with self.failures("get upcoming appointments"):
            uid = validate_user_id(user_id)
            result = await (
                self._owned(APPOINTMENTS, uid, None)
                .eq("status", AppointmentStatus.SCHEDULED)
                .gte("appointment_date", now or datetime.now(UTC))
                .order("appointment_date")
                .limit(UPCOMING_APPOINTMENTS_LIMIT)
                .execute()
            )
            return self.parse(Appointment, result.unwrap())

    async def add_appointment(self, user_id: str, appointment: Appointment) -> Appointment:
        with self.failures("add appointment"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(APPOINTMENTS, {**appointment.to_row(), "user_id": uid})
            return Appointment.model_validate(row)

    async def update_appointment(
        self, user_id: str, appointment_id: str, changes: dict[str, Any]
    ) -> Appointment:
        with self.failures("update appointment"):
            row = await self.update_one(
                APPOINTMENTS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(appointment_id),
            )
            return Appointment.model_validate(row)

    async def cancel_appointment(self, user_id: str, appointment_id: str) -> Appointment:
        return await self.update_appointment(
            user_id, appointment_id, {"status": AppointmentStatus.CANCELLED}
        )
