from rest_framework.routers import DefaultRouter
from hotel_booking.views import AdminBookingViewSet, BookingViewSet, RoomViewSet, UserBookingViewSet

router = DefaultRouter()
router.register(r'rooms', RoomViewSet)
router.register(r'bookings', BookingViewSet)
router.register(r'my/bookings', UserBookingViewSet, basename='user-booking')
router.register(r'admin/bookings', AdminBookingViewSet, basename='admin-booking')

urlpatterns = router.urls
