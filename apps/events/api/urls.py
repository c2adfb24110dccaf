from rest_framework.routers import SimpleRouter

from apps.events.api.views import EventViewSet, RegistrationViewSet, AttendanceViewSet

event_router = SimpleRouter()
event_router.register(r'', EventViewSet, basename='event')

registration_router = SimpleRouter()
registration_router.register(r'', RegistrationViewSet, basename='registration')

attendance_router = SimpleRouter()
attendance_router.register(r'', AttendanceViewSet, basename='attendance')
