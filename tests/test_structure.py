import itertools

import pytest
from rest_framework.exceptions import PermissionDenied

from apps.core.exceptions import Conflict, InvalidClient, InvalidSpecification, InvalidTransition, NotFound
from apps.programs import progression
from apps.programs import services as structure
from apps.programs.models import Program, ProgramDayExercise
from apps.programs.targets import DIMENSIONS, TargetSpec
from apps.progress.services import LogCoordinates, record_log

pytestmark = pytest.mark.django_db


class TestPrograms:
    def test_programs_for_coach(self, program, coach, other_coach, client_user):
        newer = structure.create_program(coach, client_user, "Peaking")
        structure.create_program(other_coach, client_user, "Elsewhere")

        programs = list(structure.programs_for_coach(coach))

        assert programs == [newer, program]
        assert programs[0].client == client_user

    def test_programs_for_client(self, program, coach, client_user, stranger):
        structure.create_program(coach, stranger, "Not yours")

        programs = list(structure.programs_for_client(client_user))

        assert programs == [program]
        assert programs[0].coach == coach
        assert list(programs[0].progress_logs.all()) == []

    def test_create_program_starts_active_and_unpositioned(self, program):
        assert program.status == Program.Status.ACTIVE
        assert program.completed_weeks == 0
        assert program.current_week is None and program.current_day is None

    def test_client_must_have_client_role(self, coach, other_coach):
        with pytest.raises(InvalidClient):
            structure.create_program(coach, other_coach, "Nope")

    def test_only_coaches_create_programs(self, client_user, stranger):
        with pytest.raises(PermissionDenied):
            structure.create_program(client_user, stranger, "Self-coached")

    def test_total_weeks_must_be_positive(self, coach, client_user):
        with pytest.raises(InvalidSpecification):
            structure.create_program(coach, client_user, "Zero", total_weeks=0)

    def test_update_program(self, program, coach):
        updated = structure.update_program(program, coach, title="Hypertrophy", total_weeks=6)
        assert updated.title == "Hypertrophy"
        assert updated.total_weeks == 6

    def test_update_by_client_is_denied(self, program, client_user):
        with pytest.raises(PermissionDenied):
            structure.update_program(program, client_user, title="Mine now")

    def test_total_weeks_cannot_drop_below_completed(self, built_program, coach):
        progression.complete_week(built_program, coach)
        progression.complete_week(built_program, coach)
        with pytest.raises(InvalidSpecification):
            structure.update_program(built_program, coach, total_weeks=1)

    def test_delete_program(self, built_program, coach):
        structure.delete_program(built_program, coach)
        assert not Program.objects.filter(pk=built_program.pk).exists()


class TestOrdering:
    def test_orders_stay_increasing_after_deletions(self, program, coach):
        weeks = [structure.add_week(program, coach, f"Week {i}") for i in range(1, 5)]
        structure.remove_week(program, weeks[1], coach)
        structure.remove_week(program, weeks[3], coach)
        latest = structure.add_week(program, coach, "Week 5")

        orders = [w.order for w in structure.weeks_of(program)]
        assert orders == [1, 3, 5]
        assert latest.order == 5
        assert all(a < b for a, b in zip(orders, orders[1:]))

    def test_day_orders_never_reuse_a_removed_slot(self, program, coach):
        week = structure.add_week(program, coach, "Week 1")
        days = [structure.add_day(week, coach, f"Day {i}") for i in range(1, 4)]
        structure.remove_day(week, days[2], coach)
        new_day = structure.add_day(week, coach, "Day 4")

        assert new_day.order == 4
        assert [d.order for d in structure.days_of(week)] == [1, 2, 4]

    def test_blank_names_are_rejected(self, program, coach):
        with pytest.raises(InvalidSpecification):
            structure.add_week(program, coach, "   ")

    def test_rename(self, program, coach):
        week = structure.add_week(program, coach, "Week 1")
        day = structure.add_day(week, coach, "Day 1")
        assert structure.rename_week(week, coach, "Deload").name == "Deload"
        assert structure.rename_day(day, coach, "Legs").name == "Legs"

    def test_structure_is_frozen_once_closed(self, program, coach):
        progression.cancel_program(program, coach)
        with pytest.raises(InvalidTransition):
            structure.add_week(program, coach, "Week 1")


class TestRemoval:
    def test_remove_week_from_another_program(self, built_program, coach, client_user):
        other = structure.create_program(coach, client_user, "Other")
        week = built_program.weeks.first()
        with pytest.raises(NotFound):
            structure.remove_week(other, week, coach)

    def test_remove_day_from_another_week(self, built_program, coach):
        first, second = list(structure.weeks_of(built_program))
        with pytest.raises(NotFound):
            structure.remove_day(first, second.days.first(), coach)

    def test_removing_the_current_week_clears_the_pointer(self, built_program, coach, first_week, first_day):
        progression.advance_to(built_program, first_week, first_day, coach)
        structure.remove_week(built_program, first_week, coach)
        assert progression.current_position(built_program) == (None, None)

    def test_removing_the_current_day_clears_the_pointer(self, built_program, coach, first_week, first_day):
        progression.advance_to(built_program, first_week, first_day, coach)
        structure.remove_day(first_week, first_day, coach)
        assert progression.current_position(built_program) == (None, None)

    def test_remove_missing_assignment(self, built_program, coach, first_day, orphan_exercise):
        with pytest.raises(NotFound):
            structure.remove_assignment(first_day, orphan_exercise, coach)

    def test_remove_assignment(self, built_program, coach, first_day, squat):
        structure.remove_assignment(first_day, squat, coach)
        with pytest.raises(NotFound):
            structure.read_assignment(first_day, squat)


class TestAssignments:
    @pytest.mark.parametrize('size', [1, 2, 3, 4])
    def test_round_trip_for_every_dimension_combination(self, program, coach, squat, size):
        week = structure.add_week(program, coach, "Week 1")
        values = {'reps': '8-12', 'weight': 62.5, 'time_seconds': 45, 'rpe': 8}
        for index, dims in enumerate(itertools.permutations(DIMENSIONS, size)):
            if index >= 6:
                break
            day = structure.add_day(week, coach, f"Day {index}")
            spec = TargetSpec({d: values[d] for d in dims})
            structure.assign_exercise(day, squat, spec, coach)
            assert structure.read_assignment(day, squat).targets == spec
            assert structure.read_assignment(day, squat).targets.as_lists() == spec.as_lists()

    def test_identical_assign_is_idempotent(self, program, coach, squat, queued, django_capture_on_commit_callbacks):
        week = structure.add_week(program, coach, "Week 1")
        day = structure.add_day(week, coach, "Day 1")
        spec = {'reps': 5, 'weight': 100}

        with django_capture_on_commit_callbacks(execute=True):
            first = structure.assign_exercise(day, squat, spec, coach)
            second = structure.assign_exercise(day, squat, spec, coach)

        assert first.pk == second.pk
        assert ProgramDayExercise.objects.filter(day=day, exercise=squat).count() == 1
        assert queued.delay.call_count == 1

    def test_assign_replaces_in_place(self, program, coach, squat):
        week = structure.add_week(program, coach, "Week 1")
        day = structure.add_day(week, coach, "Day 1")
        original = structure.assign_exercise(day, squat, {'reps': 5, 'weight': 100}, coach)
        replaced = structure.assign_exercise(day, squat, {'rpe': 9}, coach)

        assert replaced.pk == original.pk
        assert structure.read_assignment(day, squat).targets == TargetSpec({'rpe': 9})

    def test_invalid_spec_is_rejected_before_writing(self, program, coach, squat):
        week = structure.add_week(program, coach, "Week 1")
        day = structure.add_day(week, coach, "Day 1")
        with pytest.raises(InvalidSpecification):
            structure.assign_exercise(day, squat, {'sets': 3}, coach)
        assert not ProgramDayExercise.objects.filter(day=day).exists()

    def test_assignments_keep_insertion_order(self, first_day, squat, bench):
        assert [a.exercise for a in structure.assignments_of(first_day)] == [squat, bench]


class TestExerciseLibrary:
    def test_search(self, squat, bench):
        assert list(structure.search_exercises("squat")) == [squat]
        assert list(structure.search_exercises()) == [squat, bench]

    def test_only_coaches_create_exercises(self, client_user):
        with pytest.raises(PermissionDenied):
            structure.create_exercise(client_user, "Curl")

    def test_delete_unlogged_exercise(self, coach, orphan_exercise):
        structure.delete_exercise(orphan_exercise, coach)
        assert not structure.search_exercises("Deadlift").exists()

    def test_exercise_with_history_cannot_be_deleted(self, built_program, client_user, coach, first_week, first_day, squat):
        record_log(built_program, client_user, LogCoordinates(first_week, first_day, squat), {'reps': 5})
        with pytest.raises(Conflict):
            structure.delete_exercise(squat, coach)

    def test_only_creator_deletes(self, other_coach, orphan_exercise):
        with pytest.raises(PermissionDenied):
            structure.delete_exercise(orphan_exercise, other_coach)


class TestTree:
    def test_program_tree_shape(self, built_program):
        tree = structure.program_tree(built_program)
        assert [w['order'] for w in tree['weeks']] == [1, 2]
        day = tree['weeks'][0]['days'][0]
        assert [a['exercise']['name'] for a in day['assignments']] == ["Back Squat", "Bench Press"]
        assert day['assignments'][0]['targets'] == [
            {'dimension': 'reps', 'value': 5},
            {'dimension': 'weight', 'value': 100},
        ]
        assert tree['coach']['username'] == 'coach'
