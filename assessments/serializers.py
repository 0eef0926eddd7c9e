from rest_framework import serializers
from .models import Attempt, Answer
from testbank.serializers import TestListSerializer, TestDetailSerializer


class AnswerSerializer(serializers.ModelSerializer):
    question_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Answer
        fields = ['id', 'question_id', 'text', 'is_correct', 'score', 'updated_at']
        read_only_fields = fields


class InProgressAnswerSerializer(serializers.ModelSerializer):
    """Saved text only; grades stay hidden until the attempt is submitted."""
    question_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Answer
        fields = ['question_id', 'text']
        read_only_fields = fields


class AttemptSerializer(serializers.ModelSerializer):
    """Lightweight serializer for lists / history."""
    test = TestListSerializer(read_only=True)
    status = serializers.CharField(read_only=True)

    class Meta:
        model = Attempt
        fields = ['id', 'test', 'started_at', 'completed_at', 'time_spent', 'score', 'status']
        read_only_fields = fields


class AttemptDetailSerializer(AttemptSerializer):
    answers = serializers.SerializerMethodField()

    class Meta(AttemptSerializer.Meta):
        fields = AttemptSerializer.Meta.fields + ['answers']
        read_only_fields = fields

    def get_answers(self, obj):
        serializer_class = AnswerSerializer if obj.is_completed else InProgressAnswerSerializer
        return serializer_class(obj.answers.order_by('question__order', 'question_id'), many=True).data


class ActiveAttemptSerializer(serializers.ModelSerializer):
    """Heavy serializer for taking the test. Includes QUESTIONS and saved answers."""
    test = TestDetailSerializer(read_only=True)
    answers = InProgressAnswerSerializer(many=True, read_only=True)
    time_limit_seconds = serializers.IntegerField(source='test.time_limit_seconds', read_only=True)
    time_remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = Attempt
        fields = ['id', 'test', 'started_at', 'time_limit_seconds', 'time_remaining_seconds', 'answers']
        read_only_fields = fields

    def get_time_remaining_seconds(self, obj):
        return obj.time_remaining_seconds(now=self.context.get('now'))


class RecordAnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    answer = serializers.CharField(allow_blank=True, trim_whitespace=False)


class SubmitAttemptSerializer(serializers.Serializer):
    time_spent = serializers.IntegerField(min_value=0)


class ReviseAttemptSerializer(serializers.Serializer):
    # { "<question_id>": <points>, ... }
    scores = serializers.DictField(child=serializers.FloatField(), allow_empty=False)

    def validate_scores(self, value):
        try:
            return {int(question_id): points for question_id, points in value.items()}
        except (TypeError, ValueError):
            raise serializers.ValidationError("Keys must be question ids.")
