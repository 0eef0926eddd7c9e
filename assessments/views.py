from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from .exceptions import AttemptNotFoundError
from .lifecycle import AttemptLifecycle, NEW
from .models import Attempt
from .permissions import IsTestOwnerOrStaff
from .serializers import (
    ActiveAttemptSerializer,
    AttemptDetailSerializer,
    AttemptSerializer,
    RecordAnswerSerializer,
    ReviseAttemptSerializer,
    SubmitAttemptSerializer,
)


def find_attempt(**lookup):
    """Like get_object_or_404, but with the typed attempt_not_found payload."""
    attempt = Attempt.objects.select_related('test').filter(**lookup).first()
    if attempt is None:
        raise AttemptNotFoundError()
    return attempt


class LifecycleMixin:
    lifecycle_class = AttemptLifecycle

    def get_lifecycle(self):
        return self.lifecycle_class()

    def get_own_attempt(self, attempt_id):
        """Students may only act on their own attempts."""
        return find_attempt(id=attempt_id, user=self.request.user)


# --- STUDENT VIEWS ---

class StartAttemptView(LifecycleMixin, views.APIView):
    """
    Student starts a test, or resumes the attempt already in progress.
    Returns the questions, any saved answers and the time left on the clock.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, test_id):
        lifecycle = self.get_lifecycle()
        result = lifecycle.start_or_resume(test_id, request.user.id)

        attempt = Attempt.objects.select_related('test').get(pk=result.attempt_id)
        data = ActiveAttemptSerializer(attempt, context={'now': lifecycle.clock()}).data
        data['status'] = result.status
        data['message'] = result.message

        code = status.HTTP_201_CREATED if result.status == NEW else status.HTTP_200_OK
        return Response(data, status=code)


class RecordAnswerView(LifecycleMixin, views.APIView):
    """
    Autosave endpoint: grades and stores one answer.
    Payload: { "question_id": 1, "answer": "Newton" }
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, attempt_id):
        attempt = self.get_own_attempt(attempt_id)
        serializer = RecordAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        self.get_lifecycle().record_answer(
            attempt.id,
            serializer.validated_data['question_id'],
            serializer.validated_data['answer'],
        )
        return Response({"status": "Answer saved"})


class SubmitAttemptView(LifecycleMixin, views.APIView):
    """
    Student submits the attempt. Score is final from here on,
    except for a teacher regrade.
    Payload: { "time_spent": 1234 }
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, attempt_id):
        attempt = self.get_own_attempt(attempt_id)
        serializer = SubmitAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_lifecycle().submit(attempt.id, serializer.validated_data['time_spent'])
        return Response({"status": "Test submitted successfully", "score": result.score})


class StudentAttemptsView(generics.ListAPIView):
    """List all attempts for the logged-in student (Lightweight)."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = AttemptSerializer

    def get_queryset(self):
        return Attempt.objects.filter(user=self.request.user).select_related('test').order_by('-started_at')


class AttemptDetailView(generics.RetrieveAPIView):
    """A student's own attempt with its answers; grades appear once submitted."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = AttemptDetailSerializer

    def get_object(self):
        return find_attempt(id=self.kwargs['pk'], user=self.request.user)


# --- TEACHER VIEWS ---

class ReviseAttemptView(LifecycleMixin, views.APIView):
    """
    Teacher overrides per-question scores on a submitted attempt.
    Payload: { "scores": { "<question_id>": 10, ... } }
    """
    permission_classes = [IsTestOwnerOrStaff]

    def post(self, request, attempt_id):
        attempt = find_attempt(id=attempt_id)
        self.check_object_permissions(request, attempt)

        serializer = ReviseAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        new_score = self.get_lifecycle().revise(attempt.id, serializer.validated_data['scores'], grader=request.user)
        return Response({"status": "Test result updated successfully.", "new_score": new_score})
