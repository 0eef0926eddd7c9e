from django.contrib import admin

from .models import Test, Question


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ['order', 'text', 'kind', 'options', 'correct_answer', 'points']


@admin.register(Test)
class TestAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'status', 'time_limit', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'owner__username']
    inlines = [QuestionInline]


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'test', 'kind', 'points']
    list_filter = ['kind']
