from django.urls import path

from apps.users.api.auth_views import (
    SecureTokenObtainView,
    SecureTokenRefreshView,
    SecureLogoutView,
    CurrentUserView,
)

auth_urlpatterns = [
    path('login/', SecureTokenObtainView.as_view(), name='auth_login'),
    path('refresh/', SecureTokenRefreshView.as_view(), name='auth_refresh'),
    path('logout/', SecureLogoutView.as_view(), name='auth_logout'),
]

user_urlpatterns = [
    path('current/', CurrentUserView.as_view(), name='current-user'),
]
