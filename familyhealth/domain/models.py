"""
Domain models for family health records.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; rows read from the store are parsed with
``model_validate`` and written back with ``to_row``.
"""

from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BloodType = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]

# Columns the store owns; never sent on insert/update
SERVER_COLUMNS = frozenset({"id", "created_at", "updated_at"})


def today_utc() -> date:
    return datetime.now(UTC).date()


class Relationship(str, Enum):
    """How a family member relates to the account owner."""

    CHILD = "child"
    SPOUSE = "spouse"
    PARENT = "parent"
    SIBLING = "sibling"
    OTHER = "other"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class FlowIntensity(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    CRITICAL = "critical"


class BillStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PENDING = "Pending"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class VitalType(str, Enum):
    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    BLOOD_GLUCOSE = "blood_glucose"
    TEMPERATURE = "temperature"
    OXYGEN_SATURATION = "oxygen_saturation"


class WellnessLogType(str, Enum):
    HYDRATION = "hydration"
    SLEEP = "sleep"
    MOOD = "mood"
    STRESS = "stress"
    ENERGY = "energy"


class FeedType(str, Enum):
    BREAST = "Breast"
    BOTTLE = "Bottle"
    FORMULA = "Formula"
    SOLID = "Solid"


class Record(BaseModel):
    """Base for every persisted row: identity, owner and audit columns."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False, populate_by_name=True)

    id: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_row(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """JSON-ready column mapping without server-owned or unset columns."""
        skip = set(SERVER_COLUMNS) | (exclude or set())
        return self.model_dump(mode="json", exclude=skip, exclude_none=True, by_alias=True)


# =============================================
# Profiles and family
# =============================================


class UserProfile(Record):
    email: str | None = None
    full_name: str = Field(min_length=1)
    date_of_birth: date | None = None
    gender: Literal["male", "female", "other", "prefer_not_to_say"] | None = None
    blood_type: BloodType | None = None
    height_cm: float | None = Field(default=None, gt=0)
    phone_number: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    emergency_contact_relationship: str | None = None
    medical_notes: str | None = None


class FamilyMember(Record):
    name: str = Field(min_length=1)
    relationship: Relationship = Relationship.OTHER
    # Original label ("Self", "Grandparent", ...) kept for display and emergency lookup
    relationship_to_user: str | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    blood_type: BloodType | None = None
    height_cm: float | None = Field(default=None, gt=0)
    allergies: list[str] = Field(default_factory=list)
    medical_notes: str | None = None
    is_active: bool = True


# =============================================
# Medical records
# =============================================


class Prescription(Record):
    family_member_id: str | None = None
    medication_name: str = Field(min_length=1)
    dosage: str = ""
    frequency: str = ""
    prescribing_doctor: str | None = None
    pharmacy: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    refills_remaining: int = Field(default=0, ge=0)
    instructions: str | None = None
    is_active: bool = True


class InsurancePolicy(Record):
    family_member_id: str | None = None
    provider_name: str = Field(min_length=1)
    policy_number: str = Field(min_length=1)
    group_number: str | None = None
    member_id: str | None = None
    coverage_start_date: date | None = None
    coverage_end_date: date | None = None
    digital_card_url: str | None = None


class MedicalBill(Record):
    family_member_id: str | None = None
    provider_name: str = Field(min_length=1)
    service_date: date
    amount_due: float = Field(ge=0.0)
    due_date: date | None = None
    status: BillStatus = BillStatus.UNPAID
    document_url: str | None = None


class MedicalDocument(Record):
    family_member_id: str | None = None
    title: str = Field(min_length=1)
    document_type: Literal[
        "lab_report", "insurance_card", "referral", "prescription", "vaccination_record", "other"
    ] = "other"
    file_url: str = Field(min_length=1)
    mime_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    upload_date: date = Field(default_factory=today_utc)
    version: int = Field(default=1, ge=1)
    tags: list[str] = Field(default_factory=list)


class MedicalCondition(Record):
    family_member_id: str | None = None
    condition_name: str = Field(min_length=1)
    condition_type: Literal["chronic", "acute", "allergy", "medication_allergy"] = "chronic"
    severity: Severity = Severity.MILD
    diagnosed_date: date | None = None
    notes: str | None = None
    is_active: bool = True


class Appointment(Record):
    family_member_id: str | None = None
    appointment_type: str = Field(min_length=1)
    doctor_name: str | None = None
    clinic_name: str | None = None
    appointment_date: datetime
    duration_minutes: int = Field(default=30, gt=0)
    notes: str | None = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reminder_sent: bool = False


# =============================================
# Women's health
# =============================================


class MenstrualCycle(Record):
    start_date: date
    end_date: date | None = None
    cycle_length: int | None = Field(default=None, gt=0)
    flow_intensity: FlowIntensity | None = None
    notes: str | None = None


class FertilityWindow(Record):
    cycle_id: str | None = None
    fertile_start: date
    fertile_end: date
    ovulation_date: date | None = None
    is_predicted: bool = True


class SymptomsDiaryEntry(Record):
    log_date: date
    symptoms: list[str] = Field(default_factory=list)
    mood: str | None = None
    energy_level: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None


class ScreeningReminder(Record):
    screening_type: str = Field(min_length=1)
    last_screening_date: date | None = None
    next_due_date: date | None = None
    frequency_months: int = Field(default=12, gt=0)
    is_completed: bool = False
    reminder_sent: bool = False
    notes: str | None = None


# =============================================
# Pregnancy
# =============================================


class PregnancyProfile(Record):
    last_menstrual_period: date
    estimated_due_date: date | None = None
    conception_date: date | None = None
    current_week: int | None = Field(default=None, ge=0)
    is_active: bool = True
    pregnancy_notes: str | None = None


class PrenatalAppointment(Record):
    pregnancy_id: str
    appointment_date: date
    doctor_name: str | None = None
    clinic_name: str | None = None
    appointment_type: str | None = None
    weight_kg: float | None = Field(default=None, gt=0)
    blood_pressure_systolic: int | None = Field(default=None, gt=0)
    blood_pressure_diastolic: int | None = Field(default=None, gt=0)
    fundal_height_cm: float | None = Field(default=None, gt=0)
    fetal_heart_rate_bpm: int | None = Field(default=None, gt=0)
    notes: str | None = None
    next_appointment_date: date | None = None


class PregnancySymptom(Record):
    pregnancy_id: str
    log_date: date
    week_number: int | None = Field(default=None, ge=0)
    symptoms: list[str] = Field(default_factory=list)
    severity: Literal["mild", "moderate", "severe"] | None = None
    notes: str | None = None


class KickCount(Record):
    pregnancy_id: str
    session_date: date
    start_time: time
    end_time: time | None = None
    kick_count: int = Field(ge=0)
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None


# =============================================
# Baby care
# =============================================


class VaccinationSchedule(Record):
    child_id: str | None = None
    vaccine_name: str = Field(min_length=1)
    due_date: date
    administered_date: date | None = None
    administered_by: str | None = None
    batch_number: str | None = None
    is_completed: bool = False
    notes: str | None = None


class PediatricAppointment(Record):
    child_id: str
    appointment_date: date
    doctor_name: str | None = None
    clinic_name: str | None = None
    appointment_type: str | None = None
    weight_kg: float | None = Field(default=None, gt=0)
    height_cm: float | None = Field(default=None, gt=0)
    head_circumference_cm: float | None = Field(default=None, gt=0)
    notes: str | None = None
    next_appointment_date: date | None = None


class FeedingLog(Record):
    child_id: str
    fed_at: datetime
    feed_type: FeedType
    amount_ml: float | None = Field(default=None, ge=0)
    duration_minutes: int | None = Field(default=None, ge=0)
    breast_side: Literal["Left", "Right", "Both"] | None = None
    food_details: str | None = None
    notes: str | None = None


class BabySleepLog(Record):
    child_id: str
    start_time: datetime
    end_time: datetime
    duration_hours: float | None = Field(default=None, ge=0)
    location: str | None = None
    notes: str | None = None


class DiaperLog(Record):
    child_id: str
    changed_at: datetime
    diaper_type: Literal["Wet", "Soiled", "Mixed (Wet & Soiled)"]
    consistency: Literal["Normal", "Loose", "Hard"] | None = None
    color: str | None = None
    notes: str | None = None


# =============================================
# Wellness
# =============================================


class VitalLog(Record):
    family_member_id: str | None = None
    vital_type: VitalType
    value_numeric: float | None = None
    value_text: str | None = None
    systolic: int | None = Field(default=None, gt=0)
    diastolic: int | None = Field(default=None, gt=0)
    unit: str | None = None
    measured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    notes: str | None = None


class WeightLog(Record):
    family_member_id: str | None = None
    weight_kg: float = Field(gt=0)
    bmi: float | None = Field(default=None, gt=0)
    body_fat_percentage: float | None = Field(default=None, ge=0, le=100)
    muscle_mass_kg: float | None = Field(default=None, gt=0)
    measured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    notes: str | None = None


class ActivityLog(Record):
    family_member_id: str | None = None
    activity_type: str = Field(min_length=1)
    duration_minutes: int | None = Field(default=None, ge=0)
    calories_burned: float | None = Field(default=None, ge=0)
    distance_km: float | None = Field(default=None, ge=0)
    steps: int | None = Field(default=None, ge=0)
    intensity: Literal["low", "moderate", "high"] | None = None
    activity_date: date
    notes: str | None = None


class WellnessLog(Record):
    family_member_id: str | None = None
    log_type: WellnessLogType
    value_numeric: float | None = None
    value_text: str | None = None
    scale_rating: int | None = Field(default=None, ge=1, le=10)
    log_date: date
    notes: str | None = None


class QueryOptions(BaseModel):
    """Filters shared by the wellness log listings."""

    family_member_id: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    limit: int = Field(default=100, gt=0)


# =============================================
# Gamification
# =============================================


class UserPoints(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    total_points: int = Field(default=0, ge=0)
    last_daily_login_award_date: date | None = None


class EarnedBadge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    badge_id: str
    earned_date: date


class ActivityStreak(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    activity_type: str
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_log_date: date | None = None


class LogCount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    activity_type: str
    count: int = Field(default=0, ge=0)


# =============================================
# Notifications
# =============================================


class Notification(Record):
    title: str = Field(min_length=1)
    message: str = ""
    type: Literal["reminder", "alert", "info"] = "info"
    scheduled_for: datetime | None = None
    is_read: bool = False
