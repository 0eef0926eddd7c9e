from rest_framework import generics
from rest_framework.permissions import IsAdminUser
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogListView(generics.ListAPIView):
    """
    Regrades and automatic submissions, newest first.
    Filters: ?action=GRADE, ?attempt=<attempt id>
    """
    serializer_class = AuditLogSerializer
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        logs = AuditLog.objects.select_related('actor')

        action = self.request.query_params.get('action')
        if action:
            logs = logs.filter(action=action)

        attempt_id = self.request.query_params.get('attempt')
        if attempt_id:
            logs = logs.filter(target_model='Attempt', target_object_id=attempt_id)
        return logs
