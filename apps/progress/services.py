"""
Progress log store.

Records what a client actually did against a (program, week, day, exercise)
coordinate, or marks a rest day. Writes are validated against the program
structure; reads come back in ``completed_at`` order.
"""
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from apps.core.exceptions import (
    Conflict,
    EmptyLog,
    InvalidSpecification,
    InvalidTimestamp,
    NotFound,
    RestDayMeasurements,
    UnassignedExercise,
)
from apps.programs.models import Exercise, ProgramDay, ProgramDayExercise, ProgramWeek
from apps.users.permissions import can_manage_program, require_program_viewer

from .models import ProgressLog
from .serializers import ProgressLogSerializer

logger = logging.getLogger(__name__)

MEASUREMENT_FIELDS = ('weight', 'reps', 'time_seconds', 'rpe')
INTEGER_FIELDS = ('reps', 'time_seconds')
RPE_MAX = 10


@dataclass(frozen=True)
class LogCoordinates:
    week: ProgramWeek
    day: ProgramDay
    exercise: Optional[Exercise] = None


def _clean_measurements(measurements):
    cleaned = {}
    for name, value in (measurements or {}).items():
        if name not in MEASUREMENT_FIELDS:
            raise InvalidSpecification(f"Unknown measurement '{name}'.", field=name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise InvalidSpecification(f"'{name}' must be a number.", field=name)
        if isinstance(value, Decimal):
            finite = value.is_finite()
        else:
            finite = isinstance(value, int) or math.isfinite(value)
        if not finite:
            raise InvalidSpecification(f"'{name}' must be a finite number.", field=name)
        if value < 0:
            raise InvalidSpecification(f"'{name}' cannot be negative.", field=name)
        if name in INTEGER_FIELDS:
            if int(value) != value:
                raise InvalidSpecification(f"'{name}' must be a whole number.", field=name)
            value = int(value)
        elif name == 'rpe' and value > RPE_MAX:
            raise InvalidSpecification(f"'rpe' cannot exceed {RPE_MAX}.", field=name)
        cleaned[name] = value
    return cleaned


def _resolve_completed_at(completed_at, now):
    if completed_at is None:
        return now
    if timezone.is_naive(completed_at):
        completed_at = timezone.make_aware(completed_at)
    if completed_at > now:
        raise InvalidTimestamp(
            f"completed_at {completed_at.isoformat()} is in the future.",
            field='completed_at',
        )
    return completed_at


def record_log(program, user, coordinates, measurements=None, rest_day=False,
               completed_at=None, workout_duration=None):
    require_program_viewer(user, program)
    week, day, exercise = coordinates.week, coordinates.day, coordinates.exercise

    if week.program_id != program.pk:
        raise NotFound(f"Week #{week.pk} is not part of program #{program.pk}.", field='week_id')
    if day.week_id != week.pk:
        raise NotFound(f"Day #{day.pk} is not part of week #{week.pk}.", field='day_id')

    completed_at = _resolve_completed_at(completed_at, timezone.now())
    if workout_duration is not None and (isinstance(workout_duration, bool) or workout_duration < 0):
        raise InvalidSpecification("workout_duration cannot be negative.", field='workout_duration')

    if rest_day:
        if exercise is not None or any(v is not None for v in (measurements or {}).values()):
            raise RestDayMeasurements()
        cleaned = {}
    else:
        if exercise is None or not ProgramDayExercise.objects.filter(day=day, exercise=exercise).exists():
            raise UnassignedExercise(
                f"Exercise #{getattr(exercise, 'pk', None)} is not assigned to day #{day.pk}.",
                field='exercise_id',
            )
        cleaned = _clean_measurements(measurements)
        if not cleaned:
            raise EmptyLog(field='measurements')

    with transaction.atomic():
        if rest_day:
            # One rest-day writer per day at a time
            ProgramDay.objects.select_for_update().get(pk=day.pk)
            if ProgressLog.objects.filter(
                program=program,
                user=user,
                day=day,
                is_rest_day=True,
                completed_at__date=timezone.localdate(completed_at),
            ).exists():
                raise Conflict("Rest day already logged for this day.", field='is_rest_day')

        log = ProgressLog.objects.create(
            program=program,
            user=user,
            exercise=exercise if not rest_day else None,
            week=week,
            day=day,
            is_rest_day=bool(rest_day),
            completed_at=completed_at,
            workout_duration=workout_duration,
            **cleaned
        )

    logger.info(
        f"[Progress] Log #{log.pk} recorded for program #{program.pk} "
        f"week #{week.order} day #{day.order} ({'rest day' if rest_day else exercise.name})"
    )
    return log


def logs_for_program(program, user=None):
    logs = (
        ProgressLog.objects
        .filter(program=program)
        .select_related('exercise', 'week', 'day')
        .order_by('completed_at', 'id')
    )
    if user is not None:
        logs = logs.filter(user=user)
    return logs


def logs_for_day(program, week, day, user=None):
    return logs_for_program(program, user=user).filter(week=week, day=day)


def delete_log(log, actor):
    if not (actor.is_admin or log.user_id == actor.pk):
        raise PermissionDenied("Only the author of a progress log can delete it.")
    log_id = log.pk
    log.delete()
    logger.info(f"[Progress] Log #{log_id} deleted by {actor.username}")


def log_history(program, viewer, week=None, day=None):
    """
    Serialized logs for ``viewer``, oldest first.

    Clients see their own logs; the coach and admins see everyone's.
    Pass ``week`` and ``day`` together to narrow to one day.
    """
    require_program_viewer(viewer, program)
    user = None if can_manage_program(viewer, program) else viewer
    if week is not None and day is not None:
        logs = logs_for_day(program, week, day, user=user)
    else:
        logs = logs_for_program(program, user=user)
    return ProgressLogSerializer(logs, many=True).data
