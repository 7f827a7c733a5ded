from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication (email + password -> JWT pair)
    path('login/', TokenObtainPairView.as_view(), name='login'),

    # User profile
    path('user/', views.get_current_user, name='current-user'),
    path('user/push-token/', views.push_token, name='push-token'),
]
