from django.urls import path, include
from rest_framework.routers import SimpleRouter
from . import views

app_name = 'ledger'

router = SimpleRouter()
router.register(r'', views.SplitEventViewSet, basename='split')

urlpatterns = [
    # GET  /api/splits/                 - List my splits
    # POST /api/splits/                 - Create split
    # GET  /api/splits/{id}/            - Split detail
    # POST /api/splits/{id}/pay/        - Pay my share
    # POST /api/splits/{id}/respond/    - Accept / decline
    # POST /api/splits/{id}/decline/    - Decline my share
    # GET  /api/splits/{id}/summary/    - Payment summary

    # Must come before the router's detail route
    path('my_outstanding/', views.my_outstanding, name='my-outstanding'),

    path('', include(router.urls)),
]

wallet_urlpatterns = [
    path('', views.wallet_detail, name='wallet'),
    path('transactions/', views.wallet_transactions, name='wallet-transactions'),
    path('deposit/', views.wallet_deposit, name='wallet-deposit'),
    path('withdraw/', views.wallet_withdraw, name='wallet-withdraw'),
]
