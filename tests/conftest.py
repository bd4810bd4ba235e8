"""
Shared fixtures for the coaching backend tests.

Notification tasks are patched out for every test; tests that care about
what was queued use the ``queued`` fixture together with
``django_capture_on_commit_callbacks``.
"""
from unittest import mock

import pytest

from apps.programs import services as structure
from apps.programs.models import Exercise
from apps.users.models import CustomUser, Role


def make_user(username, role):
    return CustomUser.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=None,
        user_type=role,
    )


@pytest.fixture(autouse=True)
def queued():
    """The Celery task as seen by the dispatcher; ``.delay`` calls are recorded."""
    with mock.patch('apps.notifications.dispatch.send_notification_task') as task:
        yield task


@pytest.fixture
def coach(db):
    return make_user('coach', Role.COACH)


@pytest.fixture
def other_coach(db):
    return make_user('othercoach', Role.COACH)


@pytest.fixture
def client_user(db):
    return make_user('client', Role.CLIENT)


@pytest.fixture
def admin_user(db):
    return make_user('admin', Role.ADMIN)


@pytest.fixture
def stranger(db):
    return make_user('stranger', Role.CLIENT)


@pytest.fixture
def program(coach, client_user):
    return structure.create_program(coach, client_user, "Strength Block", total_weeks=4)


@pytest.fixture
def squat(coach):
    return structure.create_exercise(coach, "Back Squat")


@pytest.fixture
def bench(coach):
    return structure.create_exercise(coach, "Bench Press")


@pytest.fixture
def built_program(program, coach, squat, bench):
    """Two weeks of two days each, with squat and bench on every day."""
    for w in (1, 2):
        week = structure.add_week(program, coach, f"Week {w}")
        for d in (1, 2):
            day = structure.add_day(week, coach, f"Day {d}")
            structure.assign_exercise(day, squat, {'reps': 5, 'weight': 100}, coach)
            structure.assign_exercise(day, bench, {'reps': '8-12'}, coach)
    program.refresh_from_db()
    return program


@pytest.fixture
def first_week(built_program):
    return built_program.weeks.order_by('order').first()


@pytest.fixture
def first_day(first_week):
    return first_week.days.order_by('order').first()


@pytest.fixture
def orphan_exercise(coach):
    return Exercise.objects.create(name="Deadlift", created_by=coach)
