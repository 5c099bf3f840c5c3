# tasks/serializers.py

import logging

from django.db import transaction
from rest_framework import serializers

from .models import Task
from .pulse_engine.celery_tasks import score_task_stress

logger = logging.getLogger(__name__)


class TaskSerializer(serializers.ModelSerializer):
    """
    Personal task creation plus the two student-controlled toggles.

    Title, description, due date and kind are immutable after creation;
    only ``include_in_pulse`` and ``is_completed`` may change.
    """

    stress_score = serializers.IntegerField(min_value=0, max_value=100, required=False)

    class Meta:
        model = Task
        # explicit whitelist: only user-truth fields + system-read fields required by UI
        fields = [
            'id', 'title', 'description', 'kind', 'classroom', 'due_date',
            'stress_score', 'stress_justification', 'estimated_hours', 'is_scored',
            'include_in_pulse', 'is_private', 'is_completed', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'kind', 'classroom', 'stress_justification', 'estimated_hours',
            'is_scored', 'created_at', 'updated_at'
        ]
        extra_kwargs = {'description': {'required': True, 'allow_blank': False}}

    IMMUTABLE_FIELDS = ('title', 'description', 'due_date', 'stress_score', 'is_private')

    def validate(self, attrs):
        if self.instance is not None:
            changed = [f for f in self.IMMUTABLE_FIELDS if f in attrs]
            if changed:
                raise serializers.ValidationError(
                    {f: "This field cannot be changed after creation." for f in changed}
                )
            if self.instance.is_institutional and attrs.get('include_in_pulse') is False:
                raise serializers.ValidationError(
                    {"include_in_pulse": "Class assignments always count toward the pulse."}
                )
        return attrs

    def create(self, validated_data):
        """
        Persist a personal task for the authenticated student. A caller-supplied
        stress score is the task's one assignment; otherwise a background job
        scores it after commit.
        """
        user = self.context['request'].user
        explicit_score = 'stress_score' in validated_data

        with transaction.atomic():
            task = Task.objects.create(
                owner=user,
                kind=Task.Kind.PERSONAL,
                is_scored=explicit_score,
                **validated_data
            )

            if not explicit_score:
                def trigger_scoring():
                    result = score_task_stress.delay(task.id)
                    Task.objects.filter(id=task.id).update(celery_task_id=result.id)

                transaction.on_commit(trigger_scoring)

        return task
