import logging

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from apps.core.exceptions import (
    Conflict,
    IncompleteAnswers,
    InvalidClient,
    InvalidSpecification,
    InvalidTransition,
    UnknownQuestionKey,
)

from .models import Questionnaire, QuestionnaireQuestion
from .serializers import QuestionnaireQuestionSerializer, QuestionnaireSerializer

logger = logging.getLogger(__name__)

QuestionType = QuestionnaireQuestion.QuestionType
CHOICE_TYPES = (QuestionType.SELECT, QuestionType.MULTISELECT)


def _is_blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _check_answer(question, value):
    if _is_blank(value):
        return
    kind = question.type
    if kind == QuestionType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidSpecification(f"'{question.key}' expects a number.", field=question.key)
    elif kind == QuestionType.BOOLEAN:
        if not isinstance(value, bool):
            raise InvalidSpecification(f"'{question.key}' expects yes or no.", field=question.key)
    elif kind == QuestionType.SELECT:
        if value not in question.options:
            raise InvalidSpecification(f"'{value}' is not an option for '{question.key}'.", field=question.key)
    elif kind == QuestionType.MULTISELECT:
        if not isinstance(value, list) or any(choice not in question.options for choice in value):
            raise InvalidSpecification(f"Invalid choices for '{question.key}'.", field=question.key)


def _require_owner(questionnaire, actor):
    if questionnaire.client_id != actor.pk and not actor.is_admin:
        raise PermissionDenied("Only the client can fill in their questionnaire.")


def catalog():
    return QuestionnaireQuestion.objects.order_by('order', 'key')


def read_catalog():
    return QuestionnaireQuestionSerializer(catalog(), many=True).data


def add_question(key, question, type=QuestionType.TEXT, options=None, is_required=True, order=None):
    if type not in QuestionType.values:
        raise InvalidSpecification(f"Unknown question type '{type}'.", field='type')
    options = list(options or [])
    if type in CHOICE_TYPES and not options:
        raise InvalidSpecification(f"A {type} question needs options.", field='options')
    if order is None:
        order = (QuestionnaireQuestion.objects.aggregate(last=Max('order'))['last'] or 0) + 1
    try:
        with transaction.atomic():
            return QuestionnaireQuestion.objects.create(
                key=key,
                question=question,
                type=type,
                options=options,
                is_required=is_required,
                order=order,
            )
    except IntegrityError:
        raise Conflict(f"A question with key '{key}' already exists.", field='key')


def start_questionnaire(client, program=None):
    """The client's questionnaire, created on first call with a snapshot of the catalog."""
    if not client.is_client:
        raise InvalidClient(f"User #{client.pk} is not a client.", field='client_id')
    questionnaire, created = Questionnaire.objects.get_or_create(
        client=client,
        defaults={
            'program': program,
            'questions': [q.snapshot() for q in catalog()],
        },
    )
    if created:
        logger.info(f"[Questionnaire] #{questionnaire.pk} started for {client.username}")
    return questionnaire


def upsert_answer(questionnaire, key, value, actor):
    _require_owner(questionnaire, actor)
    question = QuestionnaireQuestion.objects.filter(key=key).first()
    if question is None:
        raise UnknownQuestionKey(f"'{key}' is not a question in the catalog.", field=key)
    _check_answer(question, value)

    with transaction.atomic():
        locked = Questionnaire.objects.select_for_update().get(pk=questionnaire.pk)
        if locked.status != Questionnaire.Status.PENDING:
            raise InvalidTransition(
                f"A {locked.status} questionnaire can no longer be edited.",
                field='status',
            )
        locked.answers = {**(locked.answers or {}), key: value}
        locked.save(update_fields=['answers', 'updated_at'])

    questionnaire.answers = locked.answers
    return questionnaire


def submit(questionnaire, actor):
    _require_owner(questionnaire, actor)
    with transaction.atomic():
        locked = Questionnaire.objects.select_for_update().get(pk=questionnaire.pk)
        if locked.status != Questionnaire.Status.PENDING:
            raise InvalidTransition(f"Questionnaire is already {locked.status}.", field='status')

        live = list(catalog())
        answers = locked.answers or {}
        missing = [q.key for q in live if q.is_required and _is_blank(answers.get(q.key))]
        if missing:
            raise IncompleteAnswers(
                f"Missing answers for: {', '.join(missing)}.",
                field='answers',
                extra={'missing_keys': missing},
            )

        locked.questions = [q.snapshot() for q in live]
        locked.status = Questionnaire.Status.COMPLETED
        locked.submitted_at = timezone.now()
        locked.save(update_fields=['questions', 'status', 'submitted_at', 'updated_at'])

    questionnaire.refresh_from_db()
    logger.info(f"[Questionnaire] #{questionnaire.pk} submitted")
    return questionnaire


def mark_reviewed(questionnaire, reviewer):
    if not (reviewer.is_coach or reviewer.is_admin):
        raise PermissionDenied("Only coaches can review questionnaires.")
    with transaction.atomic():
        locked = Questionnaire.objects.select_for_update().get(pk=questionnaire.pk)
        if locked.status != Questionnaire.Status.COMPLETED:
            raise InvalidTransition(
                f"Only completed questionnaires can be reviewed (this one is {locked.status}).",
                field='status',
            )
        locked.status = Questionnaire.Status.REVIEWED
        locked.reviewed_at = timezone.now()
        locked.save(update_fields=['status', 'reviewed_at', 'updated_at'])

    questionnaire.refresh_from_db()
    logger.info(f"[Questionnaire] #{questionnaire.pk} reviewed by {reviewer.username}")
    return questionnaire


def read_questionnaire(questionnaire, viewer):
    """The client, admins and any coach with a program for the client may read it."""
    allowed = (
        viewer.is_admin
        or questionnaire.client_id == viewer.pk
        or (viewer.is_coach and viewer.coached_programs.filter(client_id=questionnaire.client_id).exists())
    )
    if not allowed:
        raise PermissionDenied("You do not have access to this questionnaire.")
    return QuestionnaireSerializer(questionnaire).data
