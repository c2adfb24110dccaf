from .event_serializers import *
from .registration_serializers import *
from .attendance_serializers import *
