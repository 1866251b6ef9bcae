"""Menstrual cycle and fertility window predictions."""

import math
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel

from familyhealth.domain.models import FertilityWindow, MenstrualCycle

DEFAULT_CYCLE_LENGTH = 28
RECENT_CYCLES_FOR_AVERAGE = 3
LUTEAL_PHASE_DAYS = 14
FERTILE_DAYS_BEFORE_OVULATION = 5
FERTILE_DAYS_AFTER_OVULATION = 1


class PeriodPrediction(BaseModel):
    predicted_start: date
    average_cycle: int


class CyclePrediction(BaseModel):
    next_period: date
    next_ovulation: date


CyclePhase = Literal["menstrual", "fertile", "ovulation", "luteal", "unknown"]


class FertilityStatus(BaseModel):
    phase: CyclePhase
    message: str
    days_until_next: int | None = None
    cycle_day: int | None = None


def _half_up(value: float) -> int:
    """28.5 -> 29"""
    return math.floor(value + 0.5)


def calculate_fertile_window(
    last_period_start: date, cycle_length: int = DEFAULT_CYCLE_LENGTH
) -> FertilityWindow:
    """
    Predict the fertile window of the cycle starting on ``last_period_start``.

    Ovulation is assumed ``LUTEAL_PHASE_DAYS`` before the next period; the
    window spans five days before ovulation through the day after.
    """
    if cycle_length <= LUTEAL_PHASE_DAYS:
        raise ValueError(f"cycle_length must exceed {LUTEAL_PHASE_DAYS} days")

    ovulation = last_period_start + timedelta(days=cycle_length - LUTEAL_PHASE_DAYS)
    return FertilityWindow(
        fertile_start=ovulation - timedelta(days=FERTILE_DAYS_BEFORE_OVULATION),
        fertile_end=ovulation + timedelta(days=FERTILE_DAYS_AFTER_OVULATION),
        ovulation_date=ovulation,
        is_predicted=True,
    )


def predict_next_period(cycles: Sequence[MenstrualCycle]) -> PeriodPrediction | None:
    """
    Predict the next period start from cycle history.

    ``cycles`` may come in any order; the most recent start date anchors the
    prediction. Returns None with fewer than two cycles or no recorded lengths.
    """
    if len(cycles) < 2:
        return None

    lengths = [c.cycle_length for c in cycles if c.cycle_length]
    if not lengths:
        return None

    average = _half_up(sum(lengths) / len(lengths))
    latest = max(cycles, key=lambda c: c.start_date)
    return PeriodPrediction(
        predicted_start=latest.start_date + timedelta(days=average),
        average_cycle=average,
    )


def cycle_length_between(previous_start: date, next_start: date) -> int:
    days = (next_start - previous_start).days
    if days <= 0:
        raise ValueError("next_start must be after previous_start")
    return days


def _latest_first(cycles: Sequence[MenstrualCycle]) -> list[MenstrualCycle]:
    return sorted(cycles, key=lambda c: c.start_date, reverse=True)


def current_cycle_day(cycles: Sequence[MenstrualCycle], today: date) -> int | None:
    """
    Day number of ``today`` within the cycle it falls in, day 1 being the start.

    A cycle covers its start date through ``start + cycle_length`` days
    (28 when unknown). Returns None when no logged cycle covers ``today``.
    """
    for cycle in _latest_first(cycles):
        length = cycle.cycle_length or DEFAULT_CYCLE_LENGTH
        if cycle.start_date <= today <= cycle.start_date + timedelta(days=length):
            return (today - cycle.start_date).days + 1
    return None


def predict_next_cycle(cycles: Sequence[MenstrualCycle]) -> CyclePrediction | None:
    """
    Next period and ovulation from the three most recent cycles.

    Unknown lengths count as 28 days. Ovulation is placed
    ``LUTEAL_PHASE_DAYS`` before the predicted period.
    """
    if not cycles:
        return None

    recent = _latest_first(cycles)[:RECENT_CYCLES_FOR_AVERAGE]
    lengths = [c.cycle_length or DEFAULT_CYCLE_LENGTH for c in recent]
    next_period = recent[0].start_date + timedelta(days=_half_up(sum(lengths) / len(lengths)))
    return CyclePrediction(
        next_period=next_period,
        next_ovulation=next_period - timedelta(days=LUTEAL_PHASE_DAYS),
    )


def _is_menstruating(cycle: MenstrualCycle, today: date) -> bool:
    if cycle.end_date is None:
        return cycle.start_date == today
    return cycle.start_date <= today <= cycle.end_date


def fertility_status(
    cycles: Sequence[MenstrualCycle],
    windows: Sequence[FertilityWindow],
    today: date,
) -> FertilityStatus:
    """
    Where ``today`` falls in the cycle.

    Checked in order: a logged period covering today, a fertile window
    covering today (ovulation when it is the ovulation date), then the
    distance to the next predicted ovulation or period. With no cycles
    logged the phase is "unknown".
    """
    cycle_day = current_cycle_day(cycles, today)

    if any(_is_menstruating(c, today) for c in cycles):
        return FertilityStatus(
            phase="menstrual", message="Currently menstruating", cycle_day=cycle_day
        )

    window = next((w for w in windows if w.fertile_start <= today <= w.fertile_end), None)
    if window is not None:
        if window.ovulation_date == today:
            return FertilityStatus(
                phase="ovulation",
                message="Ovulation day - highest fertility",
                cycle_day=cycle_day,
            )
        days = (window.ovulation_date - today).days if window.ovulation_date else None
        if days is None or days <= 0:
            return FertilityStatus(phase="fertile", message="Fertile window", cycle_day=cycle_day)
        return FertilityStatus(
            phase="fertile",
            message=f"Fertile window - {days} days to ovulation",
            days_until_next=days,
            cycle_day=cycle_day,
        )

    prediction = predict_next_cycle(cycles)
    if prediction is None:
        return FertilityStatus(phase="unknown", message="Track more cycles for predictions")

    to_period = (prediction.next_period - today).days
    to_ovulation = (prediction.next_ovulation - today).days
    if 0 < to_ovulation < to_period:
        return FertilityStatus(
            phase="luteal",
            message=f"{to_ovulation} days until next ovulation",
            days_until_next=to_ovulation,
            cycle_day=cycle_day,
        )
    return FertilityStatus(
        phase="luteal",
        message=f"{to_period} days until next period",
        days_until_next=to_period,
        cycle_day=cycle_day,
    )
