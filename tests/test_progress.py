import random
from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
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
from apps.programs import progression
from apps.programs.models import ProgramDay
from apps.progress.models import ProgressLog
from apps.progress.services import (
    LogCoordinates,
    delete_log,
    log_history,
    logs_for_day,
    logs_for_program,
    record_log,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def at_first_day(first_week, first_day):
    return LogCoordinates(first_week, first_day)


@pytest.fixture
def squat_on_first_day(first_week, first_day, squat):
    return LogCoordinates(first_week, first_day, squat)


class TestRecordLog:
    def test_records_measurements(self, built_program, client_user, squat_on_first_day):
        log = record_log(built_program, client_user, squat_on_first_day, {'weight': 102.5, 'reps': 5, 'rpe': 8.5})
        log.refresh_from_db()
        assert log.weight == Decimal('102.50')
        assert log.reps == 5
        assert log.rpe == Decimal('8.5')
        assert log.time_seconds is None
        assert not log.is_rest_day

    def test_logging_never_moves_the_pointer(self, built_program, client_user, squat_on_first_day):
        record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        assert progression.current_position(built_program) == (None, None)

    def test_rest_day_with_weight_is_rejected(self, built_program, client_user, at_first_day):
        with pytest.raises(RestDayMeasurements) as exc:
            record_log(built_program, client_user, at_first_day, {'weight': 50}, rest_day=True)
        assert isinstance(exc.value, InvalidSpecification)
        assert not ProgressLog.objects.exists()

    def test_rest_day_with_exercise_is_rejected(self, built_program, client_user, squat_on_first_day):
        with pytest.raises(RestDayMeasurements):
            record_log(built_program, client_user, squat_on_first_day, rest_day=True)

    def test_rest_day(self, built_program, client_user, at_first_day):
        log = record_log(built_program, client_user, at_first_day, rest_day=True, workout_duration=0)
        assert log.is_rest_day
        assert log.exercise is None
        assert log.measurements == {}

    def test_rest_day_locks_the_day_row(self, built_program, client_user, at_first_day):
        with mock.patch.object(
            ProgramDay.objects, 'select_for_update', wraps=ProgramDay.objects.select_for_update
        ) as lock:
            record_log(built_program, client_user, at_first_day, rest_day=True)
        lock.assert_called_once_with()

    def test_rest_days_on_different_dates(self, built_program, client_user, at_first_day):
        record_log(built_program, client_user, at_first_day, rest_day=True)
        record_log(built_program, client_user, at_first_day, rest_day=True,
                   completed_at=timezone.now() - timedelta(days=2))
        assert ProgressLog.objects.filter(is_rest_day=True).count() == 2

    def test_second_rest_day_same_date_conflicts(self, built_program, client_user, at_first_day):
        record_log(built_program, client_user, at_first_day, rest_day=True)
        with pytest.raises(Conflict):
            record_log(built_program, client_user, at_first_day, rest_day=True)

    def test_repeated_sets_are_allowed(self, built_program, client_user, squat_on_first_day):
        for reps in (5, 5, 4):
            record_log(built_program, client_user, squat_on_first_day, {'reps': reps})
        assert ProgressLog.objects.count() == 3

    def test_unassigned_exercise(self, built_program, client_user, first_week, first_day, orphan_exercise):
        with pytest.raises(UnassignedExercise):
            record_log(built_program, client_user, LogCoordinates(first_week, first_day, orphan_exercise), {'reps': 5})

    def test_missing_exercise_on_training_log(self, built_program, client_user, at_first_day):
        with pytest.raises(UnassignedExercise):
            record_log(built_program, client_user, at_first_day, {'reps': 5})

    @pytest.mark.parametrize('measurements', [None, {}, {'weight': None}])
    def test_empty_log(self, built_program, client_user, squat_on_first_day, measurements):
        with pytest.raises(EmptyLog):
            record_log(built_program, client_user, squat_on_first_day, measurements)

    @pytest.mark.parametrize('measurements', [
        {'weight': -1},
        {'reps': 5.5},
        {'rpe': 11},
        {'reps': 'five'},
        {'sets': 3},
        {'reps': float('nan')},
        {'time_seconds': float('inf')},
        {'weight': Decimal('NaN')},
    ])
    def test_bad_measurements(self, built_program, client_user, squat_on_first_day, measurements):
        with pytest.raises(InvalidSpecification):
            record_log(built_program, client_user, squat_on_first_day, measurements)

    def test_future_timestamp(self, built_program, client_user, squat_on_first_day):
        tomorrow = timezone.now() + timedelta(days=1)
        with pytest.raises(InvalidTimestamp):
            record_log(built_program, client_user, squat_on_first_day, {'reps': 5}, completed_at=tomorrow)

    def test_past_timestamp_is_kept(self, built_program, client_user, squat_on_first_day):
        yesterday = timezone.now() - timedelta(days=1)
        log = record_log(built_program, client_user, squat_on_first_day, {'reps': 5}, completed_at=yesterday)
        assert log.completed_at == yesterday

    def test_day_outside_week(self, built_program, client_user, first_week, squat):
        other_day = built_program.weeks.order_by('order').last().days.first()
        with pytest.raises(NotFound):
            record_log(built_program, client_user, LogCoordinates(first_week, other_day, squat), {'reps': 5})

    def test_outsider_cannot_log(self, built_program, stranger, squat_on_first_day):
        with pytest.raises(PermissionDenied):
            record_log(built_program, stranger, squat_on_first_day, {'reps': 5})


class TestReads:
    def test_logs_for_day_are_in_completion_order(self, built_program, client_user, squat_on_first_day):
        now = timezone.now()
        offsets = list(range(50))
        random.Random(7).shuffle(offsets)
        for minutes in offsets:
            record_log(
                built_program,
                client_user,
                squat_on_first_day,
                {'reps': 5},
                completed_at=now - timedelta(minutes=minutes),
            )

        logs = list(logs_for_day(built_program, squat_on_first_day.week, squat_on_first_day.day))
        assert len(logs) == 50
        stamps = [log.completed_at for log in logs]
        assert stamps == sorted(stamps)

    def test_logs_for_program_filters_by_user(self, built_program, client_user, coach, squat_on_first_day):
        record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        record_log(built_program, coach, squat_on_first_day, {'reps': 3})
        assert logs_for_program(built_program).count() == 2
        assert [log.reps for log in logs_for_program(built_program, user=client_user)] == [5]

    def test_logs_for_day_excludes_other_days(self, built_program, client_user, first_week, squat, squat_on_first_day):
        second_day = first_week.days.order_by('order').last()
        record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        record_log(built_program, client_user, LogCoordinates(first_week, second_day, squat), {'reps': 6})
        assert [log.reps for log in logs_for_day(built_program, first_week, second_day)] == [6]


class TestHistory:
    def test_client_sees_own_logs(self, built_program, client_user, coach, squat_on_first_day):
        record_log(built_program, client_user, squat_on_first_day, {'reps': 5, 'weight': 100})
        record_log(built_program, coach, squat_on_first_day, {'reps': 3})

        history = log_history(built_program, client_user)

        assert [entry['reps'] for entry in history] == [5]
        assert history[0]['exercise_name'] == "Back Squat"
        assert history[0]['is_rest_day'] is False

    def test_coach_sees_everyone_for_a_day(self, built_program, client_user, coach, first_week, first_day, squat_on_first_day):
        record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        record_log(built_program, coach, squat_on_first_day, {'reps': 3})
        record_log(built_program, client_user, LogCoordinates(first_week, first_day), rest_day=True)

        history = log_history(built_program, coach, first_week, first_day)

        assert len(history) == 3
        assert history[2]['exercise_name'] is None

    def test_outsiders_are_denied(self, built_program, stranger):
        with pytest.raises(PermissionDenied):
            log_history(built_program, stranger)


class TestDeleteLog:
    def test_author_deletes(self, built_program, client_user, squat_on_first_day):
        log = record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        delete_log(log, client_user)
        assert not ProgressLog.objects.exists()

    def test_coach_cannot_delete_client_log(self, built_program, client_user, coach, squat_on_first_day):
        log = record_log(built_program, client_user, squat_on_first_day, {'reps': 5})
        with pytest.raises(PermissionDenied):
            delete_log(log, coach)
