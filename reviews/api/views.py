"""Reviews API views.

Create a review for a completed order, list approved reviews of a gig or a
seller (public), edit or delete one's own review and report someone else's.
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from reviews import services
from reviews.models import Review
from .permissions import IsReviewAuthor
from .serializers import (
    ReviewCreateSerializer,
    ReviewOutputSerializer,
    ReviewPatchSerializer,
    ReviewReportSerializer,
)

logger = logging.getLogger(__name__)


def _approved():
    return Review.objects.filter(status=Review.Status.APPROVED).select_related("reviewer")


class ReviewCreateAPIView(APIView):
    """POST /api/reviews/ -> review a completed order (buyer only, once)."""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = ReviewCreateSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        review = ser.save()
        logger.info("Review %s created for order %s", review.id, review.order_id)
        return Response(ReviewOutputSerializer(review).data, status=status.HTTP_201_CREATED)


class GigReviewListAPIView(generics.ListAPIView):
    """GET /api/reviews/gig/{gig_id}/ -> approved reviews of a gig."""

    serializer_class = ReviewOutputSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return _approved().filter(gig_id=self.kwargs["gig_id"]).order_by("-created_at", "-id")


class UserReviewListAPIView(generics.ListAPIView):
    """GET /api/reviews/user/{user_id}/ -> approved reviews received by a user."""

    serializer_class = ReviewOutputSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return _approved().filter(reviewee_id=self.kwargs["user_id"]).order_by("-created_at", "-id")


class ReviewDetailAPIView(generics.GenericAPIView):
    """PATCH: author edits rating/comment (back to pending). DELETE: author removes it."""

    queryset = Review.objects.select_related("reviewer")
    permission_classes = [IsAuthenticated, IsReviewAuthor]

    def patch(self, request, *args, **kwargs):
        review = self.get_object()
        ser = ReviewPatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.update_review(review, **ser.validated_data)
        return Response(ReviewOutputSerializer(review).data, status=status.HTTP_200_OK)

    def delete(self, request, *args, **kwargs):
        services.delete_review(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)


class ReviewReportAPIView(APIView):
    """POST /api/reviews/{id}/report/ -> flag a review for moderation."""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        review = get_object_or_404(Review, pk=pk)
        if review.reviewer_id == request.user.id:
            raise ValidationError({"detail": "You cannot report your own review."})
        ser = ReviewReportSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.report(review, request.user, ser.validated_data["reason"])
        return Response({"detail": "Review reported."}, status=status.HTTP_200_OK)
