"""
Progression pointer: the program's current (week, day).

The pointer is either unset (both null) or positioned (both set). It only
moves on an explicit call; logging a workout never moves it. Both columns
are written by a single UPDATE on a locked row, so a concurrent reader sees
either the old pair or the new one.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import InvalidTransition
from apps.users.permissions import require_program_manager, require_program_viewer

from .models import Program, ProgramDay, ProgramWeek

logger = logging.getLogger(__name__)


def _lock(program):
    return Program.objects.select_for_update().get(pk=program.pk)


def _require_active(program):
    if program.status != Program.Status.ACTIVE:
        raise InvalidTransition(f"Program is {program.status}.", field='status')


def _write_pointer(program, week, day, **extra):
    Program.objects.filter(pk=program.pk).update(
        current_week=week,
        current_day=day,
        updated_at=timezone.now(),
        **extra
    )


def _first_day(week):
    return ProgramDay.objects.filter(week=week).order_by('order').first()


def _next_week_with_days(program, after_order):
    weeks = ProgramWeek.objects.filter(program=program, days__isnull=False)
    if after_order is not None:
        weeks = weeks.filter(order__gt=after_order)
    return weeks.order_by('order').distinct().first()


def current_position(program):
    """(week, day) as stored, or (None, None) when the pointer is unset."""
    fresh = Program.objects.select_related('current_week', 'current_day').get(pk=program.pk)
    return fresh.current_week, fresh.current_day


def advance_to(program, week, day, actor):
    require_program_viewer(actor, program)
    if week.program_id != program.pk:
        raise InvalidTransition(f"Week #{week.pk} does not belong to program #{program.pk}.", field='week_id')
    if day.week_id != week.pk:
        raise InvalidTransition(f"Day #{day.pk} does not belong to week #{week.pk}.", field='day_id')

    with transaction.atomic():
        locked = _lock(program)
        _require_active(locked)
        _write_pointer(locked, week, day)

    program.current_week, program.current_day = week, day
    logger.info(f"[Progression] Program #{program.pk} moved to week #{week.order} day #{day.order}")
    return program


def advance_day(program, actor):
    """Move to the next day of the current week, or the first day of the next week."""
    require_program_viewer(actor, program)
    with transaction.atomic():
        locked = _lock(program)
        _require_active(locked)
        if not locked.is_positioned:
            raise InvalidTransition("The program has no current day to advance from.", field='current_day')

        current_day = ProgramDay.objects.get(pk=locked.current_day_id)
        week = locked.current_week
        day = (
            ProgramDay.objects
            .filter(week=week, order__gt=current_day.order)
            .order_by('order')
            .first()
        )
        if day is None:
            week = _next_week_with_days(locked, week.order)
            if week is None:
                raise InvalidTransition("There is no next day in this program.", field='current_day')
            day = _first_day(week)
        _write_pointer(locked, week, day)

    program.current_week, program.current_day = week, day
    logger.info(f"[Progression] Program #{program.pk} advanced to week #{week.order} day #{day.order}")
    return program


def complete_week(program, actor):
    """
    Count one more completed week and move the pointer to the next week's first day.

    An unset pointer counts as sitting on the first week. When no later week
    has days the pointer stays where it is; closing the program is left to
    ``complete_program``.
    """
    require_program_viewer(actor, program)
    with transaction.atomic():
        locked = _lock(program)
        _require_active(locked)
        completed = min(locked.total_weeks, locked.completed_weeks + 1)

        if locked.current_week is not None:
            current_order = locked.current_week.order
        else:
            first = ProgramWeek.objects.filter(program=locked).order_by('order').first()
            current_order = first.order if first else None

        next_week = _next_week_with_days(locked, current_order) if current_order is not None else None
        if next_week is not None:
            _write_pointer(locked, next_week, _first_day(next_week), completed_weeks=completed)
        else:
            Program.objects.filter(pk=locked.pk).update(completed_weeks=completed, updated_at=timezone.now())

    program.refresh_from_db()
    logger.info(
        f"[Progression] Program #{program.pk} completed {program.completed_weeks}/{program.total_weeks} weeks"
    )
    return program


def _close(program, actor, status):
    require_program_manager(actor, program)
    with transaction.atomic():
        locked = _lock(program)
        if locked.status != Program.Status.ACTIVE:
            raise InvalidTransition(
                f"Cannot move a {locked.status} program to {status}.",
                field='status',
            )
        Program.objects.filter(pk=locked.pk).update(
            status=status,
            completed_at=timezone.now() if status == Program.Status.COMPLETED else None,
            updated_at=timezone.now(),
        )
    program.refresh_from_db()
    logger.info(f"[Progression] Program #{program.pk} marked {status} by {actor.username}")
    return program


def complete_program(program, actor):
    return _close(program, actor, Program.Status.COMPLETED)


def cancel_program(program, actor):
    return _close(program, actor, Program.Status.CANCELLED)
