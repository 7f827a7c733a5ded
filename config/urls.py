"""
URL configuration for the Split Settlement project.

    /api/auth/           login, current user, push token
    /api/splits/         split events, payments, responses
    /api/wallet/         wallet balance, history, deposit, withdraw
    /api/notifications/  inbox and the service creation endpoint
    /api/reminders/      staff trigger for the reminder batch
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from apps.ledger.urls import wallet_urlpatterns
from config.views import health_check

urlpatterns = [
    # Health check (for Render)
    path('api/health/', health_check, name='health-check'),

    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # Authentication
    path('api/auth/', include('apps.accounts.urls')),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # API endpoints
    path('api/splits/', include('apps.ledger.urls')),
    path('api/wallet/', include((wallet_urlpatterns, 'wallet'))),
    path('api/notifications/', include('apps.notifications.urls')),
    path('api/reminders/', include('apps.reminders.urls')),
]


# Custom error handlers
handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
