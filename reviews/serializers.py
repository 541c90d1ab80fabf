# reviews/serializers.py

from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = PublicUserSerializer(read_only=True)
    reviewee = PublicUserSerializer(read_only=True)
    average_rating = serializers.ReadOnlyField()

    class Meta:
        model = Review
        exclude = ['helpful_users', 'flag_reason']


class ReviewCreateSerializer(serializers.ModelSerializer):
    booking = serializers.IntegerField()
    comment = serializers.CharField(min_length=10, max_length=1000)

    class Meta:
        model = Review
        fields = [
            'booking', 'type', 'overall', 'cleanliness', 'communication', 'check_in',
            'accuracy', 'location', 'value', 'title', 'comment', 'language',
        ]
        extra_kwargs = {'type': {'required': False}}


class ReviewResponseSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=500)


class ReviewUpdateSerializer(serializers.ModelSerializer):
    comment = serializers.CharField(min_length=10, max_length=1000, required=False)

    class Meta:
        model = Review
        fields = [
            'overall', 'cleanliness', 'communication', 'check_in',
            'accuracy', 'location', 'value', 'title', 'comment',
        ]
