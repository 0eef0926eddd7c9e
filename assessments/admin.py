from django.contrib import admin

from .models import Attempt, Answer


# Scores are read-only here: regrades go through the revise endpoint so the
# total is recomputed and audited.
class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    fields = ['question', 'text', 'is_correct', 'score', 'updated_at']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Attempt)
class AttemptAdmin(admin.ModelAdmin):
    list_display = ['test', 'user', 'started_at', 'completed_at', 'score']
    list_filter = ['test']
    readonly_fields = ['started_at', 'completed_at', 'time_spent', 'score']
    inlines = [AnswerInline]
