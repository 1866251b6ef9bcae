"""
Emergency card: the account owner's own profile rendered as a vCard QR code.

The owner is the family member whose ``relationship_to_user`` is "Self".
"""

from urllib.parse import quote

from pydantic import BaseModel, Field

from familyhealth.domain.models import FamilyMember, UserProfile
from familyhealth.security import validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.services.family_members import FAMILY_MEMBERS, SELF_LABEL

QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data="


class EmergencyContact(BaseModel):
    name: str | None = None
    phone: str
    relationship: str | None = None


class EmergencyData(BaseModel):
    name: str
    blood_type: str | None = None
    allergies: list[str] = Field(default_factory=list)
    emergency_contacts: list[EmergencyContact] = Field(default_factory=list)

    @classmethod
    def from_member(
        cls, member: FamilyMember, profile: UserProfile | None = None
    ) -> "EmergencyData":
        contacts = []
        if profile is not None and profile.emergency_contact_phone:
            contacts.append(
                EmergencyContact(
                    name=profile.emergency_contact_name,
                    phone=profile.emergency_contact_phone,
                    relationship=profile.emergency_contact_relationship,
                )
            )
        return cls(
            name=member.name,
            blood_type=member.blood_type,
            allergies=member.allergies,
            emergency_contacts=contacts,
        )


def build_vcard(data: EmergencyData) -> str:
    phone = data.emergency_contacts[0].phone if data.emergency_contacts else ""
    allergies = ", ".join(data.allergies) or "None"
    return "\n".join(
        [
            "BEGIN:VCARD",
            "VERSION:3.0",
            f"FN:{data.name}",
            f"TEL:{phone}",
            f"NOTE:Blood Type: {data.blood_type or 'Unknown'}, Allergies: {allergies}",
            "END:VCARD",
        ]
    )


def generate_qr_code_url(data: EmergencyData) -> str:
    """URL of a 200x200 QR image encoding the emergency vCard."""
    return QR_SERVICE_URL + quote(build_vcard(data), safe="!~*'()")


class EmergencyService(BaseService):
    component = "emergency_service"

    async def get_emergency_info(self, user_id: str) -> FamilyMember | None:
        with self.failures("get emergency info"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(FAMILY_MEMBERS)
                .select()
                .eq("user_id", uid)
                .eq("relationship_to_user", SELF_LABEL)
                .eq("is_active", True)
                .maybe_single()
                .execute()
            )
            return self.parse_one(FamilyMember, result.unwrap())

    def generate_qr_code_url(self, data: EmergencyData) -> str:
        return generate_qr_code_url(data)
