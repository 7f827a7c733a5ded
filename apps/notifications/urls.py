from django.urls import path, re_path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'notifications'

router = SimpleRouter()
router.register(r'', views.NotificationViewSet, basename='notification')

urlpatterns = [
    # POST /api/notifications/create    - Service endpoint (primary delivery tier)
    re_path(r'^create/?$', views.create_notification, name='create'),

    # GET    /api/notifications/                - Inbox
    # DELETE /api/notifications/{id}/           - Delete one
    # POST   /api/notifications/{id}/read/      - Mark read
    # POST   /api/notifications/read_all/       - Mark all read
    # GET    /api/notifications/unread_count/   - Unread badge count
    path('', include(router.urls)),
]
