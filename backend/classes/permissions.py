from rest_framework import permissions


class IsTeacher(permissions.BasePermission):
    message = "Only teachers can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_teacher)


class IsStudent(permissions.BasePermission):
    message = "Only students can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_student)


class ClassroomTeacherPermission(permissions.BasePermission):
    """
    Object-level permission: only the class's own teachers may act on it.
    """
    def has_object_permission(self, request, view, obj):
        return obj.teachers.filter(pk=request.user.pk).exists()
