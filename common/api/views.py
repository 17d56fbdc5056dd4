from django.db.models import Avg
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework import status

from gigs.models import Gig
from profiles.models import Profile
from reviews.models import Review


class BaseInfoAPIView(APIView):
    """
    GET /api/base-info/

    Returns platform-wide aggregate statistics:
    - review_count: number of approved reviews
    - average_rating: average rating of approved reviews (rounded to 1 decimal)
    - freelancer_count: number of profiles with role="freelancer"
    - active_gig_count: number of gigs listed publicly

    Authentication: none
    Permissions: AllowAny
    """

    authentication_classes = []          # No authentication required
    permission_classes = [AllowAny]      # Explicitly allow public access

    def get(self, request):
        """
        Compute and return the aggregate counters. If there are no approved
        reviews, average_rating is 0.0 (not null).
        """
        approved = Review.objects.filter(status=Review.Status.APPROVED)
        avg = approved.aggregate(avg=Avg("rating"))["avg"] or 0.0

        data = {
            "review_count": approved.count(),
            "average_rating": round(float(avg), 1),
            "freelancer_count": Profile.objects.filter(role=Profile.Role.FREELANCER).count(),
            "active_gig_count": Gig.objects.filter(status=Gig.Status.ACTIVE).count(),
        }
        return Response(data, status=status.HTTP_200_OK)
