from django.urls import path
from . import views

app_name = 'reminders'

urlpatterns = [
    path('run/', views.run_reminders, name='run'),
]
