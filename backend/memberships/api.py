from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsPlatformAdmin, IsStudioOwner
from studios.models import Studio

from . import services
from .models import Membership
from .serializers import MembershipCreateSerializer, MembershipSerializer


class MembershipPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class MembershipListCreateView(generics.ListCreateAPIView):
    """
    GET lists every membership for platform admins.
    POST lets a studio owner register a pending membership for their studio.
    """

    serializer_class = MembershipSerializer
    pagination_class = MembershipPagination
    filterset_fields = ["status", "studio", "plan"]
    ordering_fields = ["created_at", "end_date"]

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsStudioOwner()]
        return [IsAuthenticated(), IsPlatformAdmin()]

    def get_queryset(self):
        return Membership.objects.select_related("studio").order_by("-created_at", "id")

    def create(self, request, *args, **kwargs):
        serializer = MembershipCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = services.create_membership(
            request.user,
            serializer.validated_data["plan"],
        )
        return Response(MembershipSerializer(membership).data, status=status.HTTP_201_CREATED)


def _active_membership_payload(studio: Studio) -> dict:
    membership = services.get_active_membership(studio)
    return {
        "studio": studio.pk,
        "membership": MembershipSerializer(membership).data if membership else None,
    }


class MyActiveMembershipView(APIView):
    permission_classes = [IsAuthenticated, IsStudioOwner]

    def get(self, request, *args, **kwargs):
        studio = services.resolve_owned_studio(request.user)
        return Response(_active_membership_payload(studio))


class StudioActiveMembershipView(APIView):
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def get(self, request, studio_id, *args, **kwargs):
        studio = get_object_or_404(Studio, pk=studio_id)
        return Response(_active_membership_payload(studio))
