"""
End-to-end walkthrough of the family health hub on the in-memory store.

This script exercises:
1. Configuration loading and validation
2. Family profiles and the automatic "Self" profile
3. Pregnancy and fertility date math
4. Vaccination schedules and reminders
5. Vitals logging with points, badges and streaks
6. Error handling when the store fails

Run with: uv run python demo_system.py
"""

import asyncio
from datetime import UTC, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from familyhealth.app import HealthHub
from familyhealth.config import AppConfig, get_config, print_config_summary, validate_config
from familyhealth.domain.models import (
    FamilyMember,
    MenstrualCycle,
    PregnancyProfile,
    Relationship,
    VitalLog,
    VitalType,
)
from familyhealth.errors import ServiceError, StoreError
from familyhealth.services import EmergencyData
from familyhealth.store import InMemoryStore

console = Console()

USER_ID = "demo-user-0001"


def _demo_config() -> AppConfig:
    config = get_config()
    store = config.store.model_copy(update={"backend": "memory"})
    return config.model_copy(update={"store": store})


async def demo_configuration() -> bool:
    """Load and print configuration."""

    console.print(Panel("Configuration", style="blue"))

    try:
        validate_config()
        print_config_summary()
        console.print("Configuration loaded successfully", style="green")
        return True
    except Exception as e:
        console.print(f"Configuration failed: {e}", style="red")
        return False


async def demo_family(hub: HealthHub) -> bool:
    """Create the Self profile and a child, then show the emergency card."""

    console.print(Panel("Family Profiles", style="blue"))

    start = await hub.start_session(USER_ID, user_name="Ada Lovelace")
    console.print(f"Daily launch points awarded: {start.daily_points_awarded}")

    await hub.family.add_family_member(
        USER_ID,
        FamilyMember(
            name="Byron",
            relationship=Relationship.CHILD,
            relationship_to_user="Child",
            date_of_birth=datetime.now(UTC).date() - timedelta(weeks=5),
        ),
    )
    members = await hub.family.get_family_members(USER_ID)

    table = Table(title="Family Members")
    table.add_column("Name", style="cyan")
    table.add_column("Relationship", style="magenta")
    table.add_column("Born", style="white")
    for member in members:
        label = member.relationship_to_user or member.relationship.value
        table.add_row(member.name, label, str(member.date_of_birth or "-"))
    console.print(table)

    me = await hub.emergency.get_emergency_info(USER_ID)
    if me is None:
        console.print("No Self profile found", style="red")
        return False
    qr_url = hub.emergency.generate_qr_code_url(EmergencyData.from_member(me))
    console.print(f"Emergency QR: {qr_url}")
    return len(members) == 2


async def demo_pregnancy_and_cycles(hub: HealthHub) -> bool:
    """Pregnancy countdown and fertile window prediction."""

    console.print(Panel("Pregnancy and Cycles", style="blue"))

    today = datetime.now(UTC).date()
    await hub.pregnancy.create_pregnancy_profile(
        USER_ID, PregnancyProfile(last_menstrual_period=today - timedelta(days=150))
    )
    details = await hub.pregnancy.get_pregnancy_details(USER_ID)
    if details is None:
        return False

    summary = Table(title="Pregnancy")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="white")
    summary.add_row("Gestational age", details.gestational_age)
    summary.add_row("Trimester", str(details.trimester))
    summary.add_row("Due date", details.due_date.isoformat())
    summary.add_row("Days remaining", str(details.days_remaining))
    console.print(summary)

    for offset, length in ((84, 28), (56, 29), (28, 27)):
        await hub.womens_health.add_menstrual_cycle(
            USER_ID,
            MenstrualCycle(start_date=today - timedelta(days=offset), cycle_length=length),
        )
    window = await hub.womens_health.predict_fertile_window(USER_ID)
    prediction = await hub.womens_health.predict_next_period(USER_ID)
    if window is None or prediction is None:
        return False
    console.print(f"Fertile window: {window.fertile_start} to {window.fertile_end}")
    console.print(
        f"Next period: {prediction.predicted_start} (avg {prediction.average_cycle} days)"
    )
    status = await hub.womens_health.get_fertility_status(USER_ID)
    console.print(f"Today: {status.phase} ({status.message})")
    return True


async def demo_vaccinations(hub: HealthHub) -> bool:
    """Generate a schedule for the child and list reminders."""

    console.print(Panel("Vaccinations", style="blue"))

    members = await hub.family.get_family_members(USER_ID)
    child = next(m for m in members if m.relationship == Relationship.CHILD)
    assert child.id is not None and child.date_of_birth is not None
    await hub.baby_care.generate_vaccination_schedule(USER_ID, child.id, child.date_of_birth)
    reminders = await hub.baby_care.get_vaccine_reminders(USER_ID, child.id, child.name)

    table = Table(title=f"Vaccine reminders for {child.name}")
    table.add_column("Vaccine", style="cyan")
    table.add_column("Due", style="white")
    table.add_column("Urgency", style="yellow")
    for reminder in reminders:
        table.add_row(reminder.vaccine_name, reminder.due_date.isoformat(), reminder.urgency)
    console.print(table)
    return bool(reminders)


async def demo_gamification(hub: HealthHub) -> bool:
    """Log vitals and water, then show points, badges and streaks."""

    console.print(Panel("Wellness Rewards", style="blue"))

    updates: list[str] = []
    hub.gamification.subscribe(lambda u: updates.append(u.kind))

    for bpm in (72, 75, 70, 68, 74):
        await hub.vitals.add_vitals_log(
            USER_ID, VitalLog(vital_type=VitalType.HEART_RATE, value_numeric=bpm, unit="bpm")
        )
    await hub.vitals.log_water(USER_ID, glasses=8)

    points = await hub.gamification.get_user_points(USER_ID)
    badges = await hub.gamification.get_earned_badges(USER_ID)
    streaks = await hub.gamification.get_activity_streaks(USER_ID)

    console.print(f"Total points: {points.total_points}")
    console.print(f"Badges: {', '.join(b.badge_id for b in badges)}")
    for streak in streaks:
        console.print(f"Streak {streak.activity_type}: {streak.current_streak} day(s)")
    console.print(f"Update events received: {len(updates)}")
    return points.total_points > 0 and len(badges) >= 3


async def demo_error_handling() -> bool:
    """A failing table surfaces as ServiceError; gamification degrades quietly."""

    console.print(Panel("Error Handling", style="blue"))

    store = InMemoryStore()
    store.fail_table("prescriptions", StoreError("connection reset", code="network_error"))
    store.fail_table("user_points")

    async with HealthHub(_demo_config(), store) as hub:
        try:
            await hub.medical.get_prescriptions(USER_ID)
            console.print("Expected a ServiceError", style="red")
            return False
        except ServiceError as e:
            console.print(f"Service raised: {e}", style="yellow")

        legacy = await hub.medical.get_legacy_prescriptions(USER_ID)
        points = await hub.gamification.get_user_points(USER_ID)
        console.print(f"Legacy listing fallback: {legacy}; points fallback: {points.total_points}")
        return legacy == [] and points.total_points == 0


async def run_demo() -> None:
    """Run the whole walkthrough."""

    console.print(Panel("Family Health Hub - Walkthrough", style="bold blue"))

    results = [("Configuration", await demo_configuration())]

    async with HealthHub(_demo_config(), InMemoryStore()) as hub:
        steps = [
            ("Family Profiles", demo_family),
            ("Pregnancy and Cycles", demo_pregnancy_and_cycles),
            ("Vaccinations", demo_vaccinations),
            ("Wellness Rewards", demo_gamification),
        ]
        for name, step in steps:
            console.print(f"\n{'=' * 60}")
            try:
                results.append((name, await step(hub)))
            except Exception as e:
                console.print(f"{name} failed with exception: {e}", style="red")
                results.append((name, False))

    console.print(f"\n{'=' * 60}")
    results.append(("Error Handling", await demo_error_handling()))

    console.print(Panel("Summary", style="bold"))
    summary_table = Table()
    summary_table.add_column("Step", style="cyan")
    summary_table.add_column("Result", style="white")
    for name, ok in results:
        summary_table.add_row(name, "PASSED" if ok else "FAILED")
    console.print(summary_table)

    passed = sum(1 for _, ok in results if ok)
    console.print(f"\nResults: {passed}/{len(results)} steps passed")


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\nDemo stopped by user", style="yellow")
