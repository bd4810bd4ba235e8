from django.conf import settings
from django.db import models


class QuestionnaireQuestion(models.Model):
    class QuestionType(models.TextChoices):
        TEXT = 'text', 'Text'
        NUMBER = 'number', 'Number'
        SELECT = 'select', 'Select'
        MULTISELECT = 'multiselect', 'Multiple choice'
        BOOLEAN = 'boolean', 'Yes / No'

    # Stable identifier used as the key in every questionnaire's answers
    key = models.SlugField(max_length=100, unique=True)
    question = models.TextField()
    type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.TEXT)
    options = models.JSONField(default=list, blank=True)
    is_required = models.BooleanField(default=True)
    order = models.IntegerField(default=0)

    class Meta:
        ordering = ['order', 'key']

    def __str__(self):
        return self.key

    def snapshot(self):
        return {
            'key': self.key,
            'question': self.question,
            'type': self.type,
            'options': list(self.options or []),
            'is_required': self.is_required,
            'order': self.order,
        }


class Questionnaire(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'
        REVIEWED = 'reviewed', 'Reviewed'

    client = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='questionnaire'
    )
    program = models.ForeignKey(
        'programs.Program',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='questionnaires'
    )
    questions = models.JSONField(default=list, blank=True)
    answers = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    submitted_at = models.DateTimeField(null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Questionnaire for {self.client} ({self.status})"
