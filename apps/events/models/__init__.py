from .event_models import Event, MerchandiseVariant, EventAnalytics, EventAnalyticsHistory
from .registration_models import Registration
from .attendance_models import AttendanceLog
from .notification_models import EmailLog
