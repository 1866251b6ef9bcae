"""
Feature services.

One class per feature area, each a thin async layer over the table store
that validates identifiers, maps models to rows and translates failures.
"""

from .baby_care import BabyCareService
from .base import BaseService
from .emergency import EmergencyData, EmergencyService, generate_qr_code_url
from .family_members import FamilyMemberService
from .gamification import ActivityOutcome, GamificationService, GamificationUpdate
from .medical_records import MedicalRecordsService
from .notifications import NotificationService
from .pregnancy import PregnancyService
from .vitals import VitalsService
from .womens_health import WomensHealthService

__all__ = [
    "ActivityOutcome",
    "BabyCareService",
    "BaseService",
    "EmergencyData",
    "EmergencyService",
    "FamilyMemberService",
    "GamificationService",
    "GamificationUpdate",
    "MedicalRecordsService",
    "NotificationService",
    "PregnancyService",
    "VitalsService",
    "WomensHealthService",
    "generate_qr_code_url",
]
