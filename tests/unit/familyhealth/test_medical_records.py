"""Tests for MedicalRecordsService across its record types."""

from datetime import UTC, date, datetime, timedelta

import pytest

from adapters.legacy.schema import LegacyPrescription
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
from familyhealth.services import MedicalRecordsService
from familyhealth.services.medical_records import PRESCRIPTIONS
from familyhealth.store import InMemoryStore


@pytest.fixture
def service(store: InMemoryStore) -> MedicalRecordsService:
    return MedicalRecordsService(store)


class TestPrescriptions:
    @pytest.mark.asyncio
    async def test_crud_and_soft_delete(
        self, service: MedicalRecordsService, store: InMemoryStore, user_id: str
    ) -> None:
        rx = await service.add_prescription(
            user_id,
            Prescription(medication_name="Amoxicillin", dosage="250mg", family_member_id="m1"),
        )
        await service.add_prescription(user_id, Prescription(medication_name="Vitamin D"))
        assert rx.id is not None

        for_member = await service.get_prescriptions(user_id, family_member_id="m1")
        assert [p.medication_name for p in for_member] == ["Amoxicillin"]

        updated = await service.update_prescription(user_id, rx.id, {"refills_remaining": 2})
        assert updated.refills_remaining == 2

        await service.delete_prescription(user_id, rx.id)
        remaining = await service.get_prescriptions(user_id)
        assert [p.medication_name for p in remaining] == ["Vitamin D"]
        assert len(store.rows(PRESCRIPTIONS)) == 2

    @pytest.mark.asyncio
    async def test_legacy_round_trip(self, service: MedicalRecordsService, user_id: str) -> None:
        legacy = LegacyPrescription.model_validate(
            {
                "medicationName": "Ibuprofen",
                "dosage": "200mg",
                "frequency": "as needed",
                "prescribingDoctor": "Dr. Who",
                "refillDate": "2024-07-01",
                "familyMemberId": "m1",
            }
        )

        created = await service.add_legacy_prescription(user_id, legacy)
        assert created.id is not None
        assert created.refill_date == date(2024, 7, 1)
        assert created.user_id == user_id

        updated = await service.update_legacy_prescription(
            user_id, created.id, {"dosage": "400mg", "pharmacy": ""}
        )
        assert updated.dosage == "400mg"
        assert updated.prescribing_doctor == "Dr. Who"

        listed = await service.get_legacy_prescriptions(user_id)
        assert listed[0].to_legacy_dict()["medicationName"] == "Ibuprofen"

    @pytest.mark.asyncio
    async def test_legacy_listing_degrades_to_empty(
        self, service: MedicalRecordsService, store: InMemoryStore, user_id: str
    ) -> None:
        store.fail_table(PRESCRIPTIONS)
        assert await service.get_legacy_prescriptions(user_id) == []

        with pytest.raises(ServiceError, match="Failed to get prescriptions"):
            await service.get_prescriptions(user_id)


class TestInsuranceAndBills:
    @pytest.mark.asyncio
    async def test_insurance_crud(self, service: MedicalRecordsService, user_id: str) -> None:
        policy = await service.add_insurance_policy(
            user_id, InsurancePolicy(provider_name="Acme Health", policy_number="P-1")
        )
        assert policy.id is not None

        updated = await service.update_insurance_policy(
            user_id, policy.id, {"group_number": "G-9"}
        )
        assert updated.group_number == "G-9"

        await service.delete_insurance_policy(user_id, policy.id)
        assert await service.get_insurance_policies(user_id) == []

    @pytest.mark.asyncio
    async def test_unpaid_bills_exclude_paid_and_sort_by_due(
        self, service: MedicalRecordsService, user_id: str
    ) -> None:
        def bill(provider: str, due: date, status: BillStatus) -> MedicalBill:
            return MedicalBill(
                provider_name=provider,
                service_date=date(2024, 5, 1),
                amount_due=50.0,
                due_date=due,
                status=status,
            )

        await service.add_medical_bill(user_id, bill("Late", date(2024, 7, 1), BillStatus.UNPAID))
        await service.add_medical_bill(user_id, bill("Paid", date(2024, 6, 1), BillStatus.PAID))
        await service.add_medical_bill(
            user_id, bill("Soon", date(2024, 6, 20), BillStatus.PENDING)
        )

        unpaid = await service.get_unpaid_bills(user_id)

        assert [b.provider_name for b in unpaid] == ["Soon", "Late"]
        assert len(await service.get_medical_bills(user_id)) == 3

    @pytest.mark.asyncio
    async def test_mark_bill_paid(self, service: MedicalRecordsService, user_id: str) -> None:
        bill = await service.add_medical_bill(
            user_id,
            MedicalBill(provider_name="Clinic", service_date=date(2024, 5, 1), amount_due=20.0),
        )
        assert bill.id is not None

        paid = await service.update_medical_bill(user_id, bill.id, {"status": BillStatus.PAID})

        assert paid.status == BillStatus.PAID
        assert await service.get_unpaid_bills(user_id) == []


class TestDocumentsAndConditions:
    @pytest.mark.asyncio
    async def test_new_file_bumps_version(self, service: MedicalRecordsService, user_id: str):
        doc = await service.add_document(
            user_id,
            MedicalDocument(title="Blood panel", document_type="lab_report", file_url="s3://a"),
        )
        assert doc.id is not None
        assert doc.version == 1

        renamed = await service.update_document(user_id, doc.id, {"title": "Blood panel 2024"})
        assert renamed.version == 1

        replaced = await service.update_document(user_id, doc.id, {"file_url": "s3://b"})
        assert replaced.version == 2
        assert replaced.file_url == "s3://b"

    @pytest.mark.asyncio
    async def test_update_missing_document_fails(
        self, service: MedicalRecordsService, user_id: str
    ) -> None:
        with pytest.raises(ServiceError, match="Failed to update document"):
            await service.update_document(user_id, "missing", {"title": "x"})

    @pytest.mark.asyncio
    async def test_conditions_soft_delete(self, service: MedicalRecordsService, user_id: str):
        condition = await service.add_medical_condition(
            user_id, MedicalCondition(condition_name="Asthma")
        )
        assert condition.id is not None

        await service.delete_medical_condition(user_id, condition.id)

        assert await service.get_medical_conditions(user_id) == []


class TestAppointments:
    @pytest.mark.asyncio
    async def test_upcoming_only_scheduled_future(
        self, service: MedicalRecordsService, user_id: str
    ) -> None:
        now = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
        past = await service.add_appointment(
            user_id,
            Appointment(appointment_type="Checkup", appointment_date=now - timedelta(days=1)),
        )
        later = await service.add_appointment(
            user_id,
            Appointment(appointment_type="Dental", appointment_date=now + timedelta(days=10)),
        )
        soon = await service.add_appointment(
            user_id,
            Appointment(appointment_type="Eye exam", appointment_date=now + timedelta(hours=2)),
        )
        assert later.id is not None and soon.id is not None

        cancelled = await service.cancel_appointment(user_id, later.id)
        assert cancelled.status == AppointmentStatus.CANCELLED

        upcoming = await service.get_upcoming_appointments(user_id, now=now)
        assert [a.id for a in upcoming] == [soon.id]

        everything = await service.get_appointments(user_id)
        assert [a.id for a in everything] == [past.id, soon.id, later.id]
