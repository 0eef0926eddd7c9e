# classroom_platform/testbank/serializers.py
from rest_framework import serializers
from .models import Test, Question


class QuestionSerializer(serializers.ModelSerializer):
    """Question as shown to a student taking the test. Never exposes the answer key."""
    question_text = serializers.CharField(source='text', read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'order', 'question_text', 'kind', 'options', 'points']


class TestDetailSerializer(serializers.ModelSerializer):
    questions = QuestionSerializer(many=True, read_only=True)
    total_points = serializers.IntegerField(read_only=True)

    class Meta:
        model = Test
        fields = ['id', 'name', 'description', 'time_limit', 'status', 'total_points', 'questions']


class TestListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Test
        fields = ['id', 'name', 'time_limit']
