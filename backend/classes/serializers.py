# classes/serializers.py

from rest_framework import serializers

from .models import Classroom


class ClassroomSerializer(serializers.ModelSerializer):
    teacher_emails = serializers.SlugRelatedField(
        source='teachers', slug_field='email', many=True, read_only=True
    )
    student_count = serializers.SerializerMethodField()

    class Meta:
        model = Classroom
        fields = ('id', 'name', 'code', 'teacher_emails', 'student_count', 'created_at')
        read_only_fields = ('id', 'code', 'teacher_emails', 'student_count', 'created_at')

    def get_student_count(self, obj):
        return obj.students.count()


class JoinClassroomSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=16)


class AssignmentSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    due_date = serializers.DateField()
