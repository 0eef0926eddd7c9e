from django.urls import path
from .views import (
    StartAttemptView,
    RecordAnswerView,
    SubmitAttemptView,
    StudentAttemptsView,
    AttemptDetailView,
    ReviseAttemptView,
)

urlpatterns = [
    # Student Test Flow
    path('tests/<int:test_id>/start/', StartAttemptView.as_view(), name='start-attempt'),
    path('attempts/', StudentAttemptsView.as_view(), name='student-attempts'),
    path('attempts/<int:pk>/', AttemptDetailView.as_view(), name='attempt-detail'),
    path('attempts/<int:attempt_id>/answers/', RecordAnswerView.as_view(), name='record-answer'),
    path('attempts/<int:attempt_id>/submit/', SubmitAttemptView.as_view(), name='submit-attempt'),

    # --- Grading Module (Teacher) ---
    path('grading/attempts/<int:attempt_id>/revise/', ReviseAttemptView.as_view(), name='revise-attempt'),
]
