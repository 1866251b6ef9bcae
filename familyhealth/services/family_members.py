"""Family member profiles and the account owner's own profile."""

from typing import Any

from adapters.legacy.schema import LegacyFamilyMember, member_from_legacy
from familyhealth.domain.models import FamilyMember, Relationship, UserProfile
from familyhealth.security import sanitize_input, validate_id, validate_user_id
from familyhealth.services.base import BaseService, clean_changes

PROFILES = "profiles"
FAMILY_MEMBERS = "family_members"

SELF_LABEL = "Self"


class FamilyMemberService(BaseService):
    component = "family_member_service"

    # -- account profile -----------------------------------------------------

    async def get_profile(self, user_id: str) -> UserProfile | None:
        with self.failures("get profile"):
            uid = validate_user_id(user_id)
            query = self.table(PROFILES).select().eq("user_id", uid).maybe_single()
            return self.parse_one(UserProfile, (await query.execute()).unwrap())

    async def create_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        with self.failures("create profile"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(PROFILES, {**profile.to_row(), "user_id": uid})
            return UserProfile.model_validate(row)

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> UserProfile:
        with self.failures("update profile"):
            uid = validate_user_id(user_id)
            query = self.table(PROFILES).update(clean_changes(changes)).eq("user_id", uid).single()
            return UserProfile.model_validate((await query.execute()).unwrap())

    # -- family members ----------------------------------------------------------

    async def _create_self_profile(self, uid: str, user_name: str) -> FamilyMember:
        member = FamilyMember(
            name=sanitize_input(user_name) or user_name,
            relationship=Relationship.OTHER,
            relationship_to_user=SELF_LABEL,
        )
        row = await self.insert_one(FAMILY_MEMBERS, {**member.to_row(), "user_id": uid})
        self.logger.info("self_profile_created", user_id=uid)
        return FamilyMember.model_validate(row)

    async def get_family_members(
        self, user_id: str, user_name_if_new: str | None = None
    ) -> list[FamilyMember]:
        """
        Active members, newest first.

        A user with no members yet gets a "Self" profile created on the spot
        when ``user_name_if_new`` is given.
        """
        with self.failures("get family members"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(FAMILY_MEMBERS)
                .select()
                .eq("user_id", uid)
                .eq("is_active", True)
                .order("created_at", ascending=False)
                .execute()
            )
            members = self.parse(FamilyMember, result.unwrap())
            if not members and user_name_if_new:
                return [await self._create_self_profile(uid, user_name_if_new)]
            return members

    async def get_family_member(self, user_id: str, member_id: str) -> FamilyMember | None:
        with self.failures("get family member"):
            uid = validate_user_id(user_id)
            mid = validate_id(member_id)
            query = self.table(FAMILY_MEMBERS).select().eq("user_id", uid).eq("id", mid)
            return self.parse_one(FamilyMember, (await query.maybe_single().execute()).unwrap())

    async def add_family_member(self, user_id: str, member: FamilyMember) -> FamilyMember:
        with self.failures("add family member"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(FAMILY_MEMBERS, {**member.to_row(), "user_id": uid})
            return FamilyMember.model_validate(row)

    async def update_family_member(
        self, user_id: str, member_id: str, changes: dict[str, Any]
    ) -> FamilyMember:
        with self.failures("update family member"):
            row = await self.update_one(
                FAMILY_MEMBERS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(member_id),
            )
            return FamilyMember.model_validate(row)

    async def delete_family_member(self, user_id: str, member_id: str) -> None:
        """Soft delete: the row stays with ``is_active = false``."""
        with self.failures("delete family member"):
            await self.delete_one(
                FAMILY_MEMBERS,
                user_id=validate_user_id(user_id),
                record_id=validate_id(member_id),
                soft=True,
            )

    # -- legacy shapes ---------------------------------------------------------------

    async def add_legacy_member(self, user_id: str, legacy: LegacyFamilyMember) -> FamilyMember:
        return await self.add_family_member(user_id, member_from_legacy(legacy))

    async def update_legacy_member(self, user_id: str, legacy: LegacyFamilyMember) -> FamilyMember:
        changes = member_from_legacy(legacy).to_row(exclude={"is_active"})
        return await self.update_family_member(user_id, legacy.id or "", changes)
