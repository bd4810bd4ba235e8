"""
Program structure store.

Builds and edits the Program -> Week -> Day -> Exercise assignment tree.
Every operation takes the caller as an explicit argument and raises
``apps.core.exceptions`` errors for bad requests.
"""
import logging

from django.db import transaction
from django.db.models import F, Prefetch, ProtectedError
from rest_framework.exceptions import PermissionDenied

from apps.core.exceptions import Conflict, InvalidClient, InvalidSpecification, InvalidTransition, NotFound
from apps.core.utils import retry_on_conflict
from apps.notifications.dispatch import notify_program_update
from apps.users.permissions import require_program_manager

from .models import Exercise, Program, ProgramDay, ProgramDayExercise, ProgramWeek
from .targets import TargetSpec

logger = logging.getLogger(__name__)


def _require_active(program):
    if program.status != Program.Status.ACTIVE:
        raise InvalidTransition(
            f"Program is {program.status}; its structure can no longer be edited.",
            field='status',
        )


def _clean_name(name, field='name'):
    name = (name or '').strip()
    if not name:
        raise InvalidSpecification(f"{field} is required.", field=field)
    return name


def _lock_program(program):
    return Program.objects.select_for_update().get(pk=program.pk)


# -------------------------------
# Programs
# -------------------------------
def create_program(coach, client, title, description='', total_weeks=12):
    if not (coach.is_coach or coach.is_admin):
        raise PermissionDenied("Only coaches can create programs.")
    if not client.is_client:
        raise InvalidClient(f"User #{client.pk} is not a client.", field='client_id')
    if total_weeks < 1:
        raise InvalidSpecification("total_weeks must be at least 1.", field='total_weeks')

    program = Program.objects.create(
        coach=coach,
        client=client,
        title=_clean_name(title, 'title'),
        description=description or '',
        total_weeks=total_weeks,
    )
    logger.info(f"[Program] #{program.pk} created by {coach.username} for {client.username}")
    return program


def update_program(program, actor, title=None, description=None, total_weeks=None):
    require_program_manager(actor, program)
    with transaction.atomic():
        locked = _lock_program(program)
        if title is not None:
            locked.title = _clean_name(title, 'title')
        if description is not None:
            locked.description = description
        if total_weeks is not None:
            if total_weeks < max(1, locked.completed_weeks):
                raise InvalidSpecification(
                    f"total_weeks cannot be lower than the {locked.completed_weeks} completed weeks.",
                    field='total_weeks',
                )
            locked.total_weeks = total_weeks
        locked.save(update_fields=['title', 'description', 'total_weeks', 'updated_at'])
        notify_program_update(locked, actor, 'details')
    return locked


def programs_for_coach(coach):
    """The coach's programs, newest first, with each client and their questionnaire."""
    return coach.coached_programs.select_related('client', 'client__questionnaire').order_by('-created_at', '-id')


def programs_for_client(client):
    """The client's programs, newest first, with the coach and logged progress."""
    return (
        client.client_programs
        .select_related('coach')
        .prefetch_related('progress_logs')
        .order_by('-created_at', '-id')
    )


def delete_program(program, actor):
    require_program_manager(actor, program)
    program_id = program.pk
    program.delete()
    logger.info(f"[Program] #{program_id} deleted by {actor.username}")


# -------------------------------
# Weeks & days
# -------------------------------
@retry_on_conflict
def add_week(program, actor, name):
    """Append a week; its order comes from the program's monotonic counter."""
    require_program_manager(actor, program)
    name = _clean_name(name)
    with transaction.atomic():
        locked = _lock_program(program)
        _require_active(locked)
        order = locked.next_week_order
        Program.objects.filter(pk=locked.pk).update(next_week_order=F('next_week_order') + 1)
        week = ProgramWeek.objects.create(program=locked, name=name, order=order)
        notify_program_update(locked, actor, 'week_added')
    program.next_week_order = order + 1
    logger.info(f"[Program] #{program.pk} week #{order} '{name}' added")
    return week


@retry_on_conflict
def add_day(week, actor, name):
    """Append a day to ``week``; ordering follows the same rule as weeks."""
    program = week.program
    require_program_manager(actor, program)
    name = _clean_name(name)
    with transaction.atomic():
        locked_program = _lock_program(program)
        _require_active(locked_program)
        locked = ProgramWeek.objects.select_for_update().get(pk=week.pk)
        order = locked.next_day_order
        ProgramWeek.objects.filter(pk=locked.pk).update(next_day_order=F('next_day_order') + 1)
        day = ProgramDay.objects.create(week=locked, name=name, order=order)
        notify_program_update(locked_program, actor, 'day_added')
    week.next_day_order = order + 1
    logger.info(f"[Program] #{program.pk} week #{week.order} day #{order} '{name}' added")
    return day


def rename_week(week, actor, name):
    require_program_manager(actor, week.program)
    _require_active(week.program)
    week.name = _clean_name(name)
    week.save(update_fields=['name'])
    return week


def rename_day(day, actor, name):
    require_program_manager(actor, day.week.program)
    _require_active(day.week.program)
    day.name = _clean_name(name)
    day.save(update_fields=['name'])
    return day


def remove_week(program, week, actor):
    require_program_manager(actor, program)
    if week.program_id != program.pk:
        raise NotFound(f"Week #{week.pk} is not part of program #{program.pk}.", field='week_id')
    with transaction.atomic():
        locked = _lock_program(program)
        _require_active(locked)
        if locked.current_week_id == week.pk:
            # Clear the pair together so no reader sees a day without its week
            Program.objects.filter(pk=locked.pk).update(current_week=None, current_day=None)
            program.current_week = program.current_day = None
        week.delete()
        notify_program_update(locked, actor, 'week_removed')
    logger.info(f"[Program] #{program.pk} week #{week.order} removed")


def remove_day(week, day, actor):
    program = week.program
    require_program_manager(actor, program)
    if day.week_id != week.pk:
        raise NotFound(f"Day #{day.pk} is not part of week #{week.pk}.", field='day_id')
    with transaction.atomic():
        locked = _lock_program(program)
        _require_active(locked)
        if locked.current_day_id == day.pk:
            Program.objects.filter(pk=locked.pk).update(current_week=None, current_day=None)
            program.current_week = program.current_day = None
        day.delete()
        notify_program_update(locked, actor, 'day_removed')
    logger.info(f"[Program] #{program.pk} week #{week.order} day #{day.order} removed")


# -------------------------------
# Exercise library
# -------------------------------
def create_exercise(creator, name, description='', video_link=None):
    if not creator.is_coach:
        raise PermissionDenied("Only coaches can create exercises.")
    return Exercise.objects.create(
        name=_clean_name(name),
        description=description or '',
        video_link=video_link or None,
        created_by=creator,
    )


def search_exercises(query=''):
    exercises = Exercise.objects.select_related('created_by')
    if query:
        exercises = exercises.filter(name__icontains=query.strip())
    return exercises.order_by('name', 'id')


def delete_exercise(exercise, actor):
    if not (actor.is_admin or exercise.created_by_id == actor.pk):
        raise PermissionDenied("Only the exercise's creator can delete it.")
    try:
        exercise.delete()
    except ProtectedError:
        raise Conflict(
            f"Exercise '{exercise.name}' has logged progress and cannot be deleted.",
            field='exercise_id',
        )


# -------------------------------
# Assignments
# -------------------------------
@retry_on_conflict
def assign_exercise(day, exercise, target_spec, actor):
    """
    Create or replace the assignment of ``exercise`` to ``day``.
    Repeating an identical call leaves a single, unchanged assignment.
    """
    program = day.week.program
    require_program_manager(actor, program)
    _require_active(program)
    spec = target_spec if isinstance(target_spec, TargetSpec) else TargetSpec(target_spec)
    target_types, values = spec.as_lists()

    with transaction.atomic():
        assignment, created = ProgramDayExercise.objects.select_for_update().get_or_create(
            day=day,
            exercise=exercise,
            defaults={'target_types': target_types, 'values': values},
        )
        changed = created or assignment.target_types != target_types or assignment.values != values
        if changed and not created:
            assignment.target_types = target_types
            assignment.values = values
            assignment.save(update_fields=['target_types', 'values', 'updated_at'])
        if changed:
            notify_program_update(program, actor, 'exercise_assigned')
    return assignment


def read_assignment(day, exercise):
    try:
        return ProgramDayExercise.objects.select_related('exercise').get(day=day, exercise=exercise)
    except ProgramDayExercise.DoesNotExist:
        raise NotFound(f"Exercise #{exercise.pk} is not assigned to day #{day.pk}.", field='exercise_id')


def remove_assignment(day, exercise, actor):
    program = day.week.program
    require_program_manager(actor, program)
    _require_active(program)
    with transaction.atomic():
        deleted, _ = ProgramDayExercise.objects.filter(day=day, exercise=exercise).delete()
        if not deleted:
            raise NotFound(f"Exercise #{exercise.pk} is not assigned to day #{day.pk}.", field='exercise_id')
        notify_program_update(program, actor, 'exercise_removed')


# -------------------------------
# Reads
# -------------------------------
def assignments_of(day):
    return ProgramDayExercise.objects.filter(day=day).select_related('exercise').order_by('id')


def days_of(week):
    assignments = Prefetch(
        'assignments',
        queryset=ProgramDayExercise.objects.select_related('exercise').order_by('id'),
    )
    return ProgramDay.objects.filter(week=week).prefetch_related(assignments).order_by('order')


def weeks_of(program):
    """Weeks in ascending order, with their days and assignments prefetched in order."""
    days = Prefetch(
        'days',
        queryset=ProgramDay.objects.order_by('order').prefetch_related(
            Prefetch('assignments', queryset=ProgramDayExercise.objects.select_related('exercise').order_by('id'))
        ),
    )
    return ProgramWeek.objects.filter(program=program).prefetch_related(days).order_by('order')


def program_tree(program):
    from .serializers import ProgramTreeSerializer
    return ProgramTreeSerializer(program).data
