from django.contrib import admin

from django.urls import path, include
from django.conf.urls.static import static
from django.conf import settings

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from apps.users.api.urls import auth_urlpatterns, user_urlpatterns
from apps.events.api.urls import event_router, registration_router, attendance_router
from apps.shop.api.urls import merchandise_router

'''
SCHEMA
'''

schema_view = get_schema_view(
    openapi.Info(
        title="Felicity Fest API",
        default_version='v1',
        description="Event registration, merchandise orders and attendance",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

'''
MAIN URL PATTERNS
'''

urlpatterns = [
    path("admin/", admin.site.urls),

    # HTTPOnly cookie JWT authentication
    path('api/auth/', include(auth_urlpatterns)),
    path('api/users/', include(user_urlpatterns)),

    path('api/events/', include(event_router.urls)),
    path('api/registrations/merchandise/', include(merchandise_router.urls)),
    path('api/registrations/', include(registration_router.urls)),
    path('api/attendance/', include(attendance_router.urls)),

    # ReDoc documentation
    path('', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
