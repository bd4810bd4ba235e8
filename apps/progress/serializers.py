from rest_framework import serializers

from .models import ProgressLog


class ProgressLogSerializer(serializers.ModelSerializer):
    exercise_name = serializers.CharField(source='exercise.name', read_only=True, default=None)

    class Meta:
        model = ProgressLog
        fields = [
            'id',
            'program',
            'user',
            'exercise',
            'exercise_name',
            'week',
            'day',
            'weight',
            'reps',
            'time_seconds',
            'rpe',
            'workout_duration',
            'is_rest_day',
            'completed_at',
            'created_at',
        ]
        read_only_fields = fields
