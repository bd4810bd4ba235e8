from rest_framework import serializers

from .models import Questionnaire, QuestionnaireQuestion


class QuestionnaireQuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuestionnaireQuestion
        fields = ['id', 'key', 'question', 'type', 'options', 'is_required', 'order']
        read_only_fields = fields


class QuestionnaireSerializer(serializers.ModelSerializer):
    class Meta:
        model = Questionnaire
        fields = [
            'id',
            'client',
            'program',
            'questions',
            'answers',
            'status',
            'submitted_at',
            'reviewed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields
