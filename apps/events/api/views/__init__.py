from .event_viewsets import EventViewSet
from .registration_viewsets import RegistrationViewSet
from .attendance_viewsets import AttendanceViewSet
