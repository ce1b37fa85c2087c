from django.http import JsonResponse
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import services
from .models import Booking, Room
from .serializers import (
    AdminBookingUpdateSerializer,
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingSerializer,
    RoomSerializer,
)

BOOKING_REFERENCE_REGEX = '[A-Za-z0-9]{8}'


def welcome(request):
    return JsonResponse({"message": "Welcome to the Hotel Booking System"})


def health_check(request):
    return JsonResponse({"status": "ok"})


class RoomViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Room.objects.select_related('room_type').order_by('id')
    serializer_class = RoomSerializer

    def list(self, request):
        """Whole catalog, or the rooms free for a stay when dates are given"""
        params = request.query_params
        if 'check_in' in params or 'check_out' in params:
            query = AvailabilityQuerySerializer(data=params)
            query.is_valid(raise_exception=True)
            rooms = services.find_available_rooms(**query.validated_data)
        else:
            rooms = services.list_rooms()

        serializer = self.get_serializer(rooms, many=True)
        return Response(serializer.data)


class BookingViewSet(mixins.CreateModelMixin, viewsets.GenericViewSet):
    """Public booking form endpoints: create and look up by reference"""

    queryset = Booking.objects.select_related('room__room_type', 'guest', 'user')
    serializer_class = BookingSerializer
    lookup_field = 'reference'
    lookup_value_regex = BOOKING_REFERENCE_REGEX

    def get_serializer_class(self):
        if self.action == 'create':
            return BookingCreateSerializer
        return BookingSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = request.user.pk if request.user.is_authenticated else None
        booking = serializer.save(user_id=user_id)
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        return Response(data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, reference=None):
        booking = services.get_booking_details(reference)
        return Response(self.get_serializer(booking).data)


class UserBookingViewSet(viewsets.GenericViewSet):
    """Bookings of the signed-in user"""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_field = 'reference'
    lookup_value_regex = BOOKING_REFERENCE_REGEX

    def get_queryset(self):
        return services.list_user_bookings(self.request.user.pk)

    def list(self, request):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response(serializer.data)

    def retrieve(self, request, reference=None):
        booking = services.get_booking_details(reference, user_id=request.user.pk)
        return Response(self.get_serializer(booking).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, reference=None):
        booking = services.cancel_booking(reference, request.user.pk)
        return Response({
            'detail': 'Booking cancelled successfully.',
            'booking': self.get_serializer(booking).data,
        })

    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        summary = services.booking_summary(request.user.pk)
        summary['recent'] = self.get_serializer(summary['recent'], many=True).data
        return Response(summary)


class AdminBookingViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """Staff management of all bookings"""

    queryset = Booking.objects.select_related('room__room_type', 'guest', 'user').order_by('-created_at', '-id')
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_field = 'reference'
    lookup_value_regex = BOOKING_REFERENCE_REGEX

    def get_object(self):
        return services.get_booking_details(self.kwargs['reference'])

    def update(self, request, reference=None, partial=False):
        booking = self.get_object()
        serializer = AdminBookingUpdateSerializer(booking, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        booking = serializer.save()
        booking = services.get_booking_details(booking.reference)
        return Response(self.get_serializer(booking).data)

    def partial_update(self, request, reference=None):
        return self.update(request, reference, partial=True)

    def destroy(self, request, reference=None):
        services.delete_booking(reference)
        return Response(status=status.HTTP_204_NO_CONTENT)
