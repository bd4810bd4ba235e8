from rest_framework import serializers

from apps.users.serializers import UserSerializer

from .models import Exercise, Program, ProgramDay, ProgramDayExercise, ProgramWeek
from .services import weeks_of


class ExerciseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Exercise
        fields = ['id', 'name', 'description', 'video_link', 'created_by', 'created_at']
        read_only_fields = fields


class AssignmentSerializer(serializers.ModelSerializer):
    exercise = ExerciseSerializer(read_only=True)
    targets = serializers.SerializerMethodField()

    class Meta:
        model = ProgramDayExercise
        fields = ['id', 'exercise', 'target_types', 'values', 'targets']
        read_only_fields = fields

    def get_targets(self, obj):
        return [{'dimension': dimension, 'value': value} for dimension, value in obj.targets.as_pairs()]


class DaySerializer(serializers.ModelSerializer):
    assignments = AssignmentSerializer(many=True, read_only=True)

    class Meta:
        model = ProgramDay
        fields = ['id', 'name', 'order', 'assignments']
        read_only_fields = fields


class WeekSerializer(serializers.ModelSerializer):
    days = DaySerializer(many=True, read_only=True)

    class Meta:
        model = ProgramWeek
        fields = ['id', 'name', 'order', 'days']
        read_only_fields = fields


class ProgramSerializer(serializers.ModelSerializer):
    coach = UserSerializer(read_only=True)
    client = UserSerializer(read_only=True)

    class Meta:
        model = Program
        fields = [
            'id',
            'title',
            'description',
            'coach',
            'client',
            'status',
            'total_weeks',
            'completed_weeks',
            'current_week',
            'current_day',
            'completed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ProgramTreeSerializer(ProgramSerializer):
    weeks = serializers.SerializerMethodField()

    class Meta(ProgramSerializer.Meta):
        fields = ProgramSerializer.Meta.fields + ['weeks']
        read_only_fields = fields

    def get_weeks(self, obj):
        return WeekSerializer(weeks_of(obj), many=True).data
