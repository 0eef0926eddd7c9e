from rest_framework import permissions


class IsTestOwnerOrStaff(permissions.BasePermission):
    """
    Allows regrading to the teacher who owns the test, and to staff.
    Students (including the attempt's own user) are blocked.
    """
    message = "You don't have permission to update this test result."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        # obj is an Attempt
        return request.user.is_staff or obj.test.owner_id == request.user.id
