from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'settlements'

router = DefaultRouter()
router.register(r'records', views.SettlementRecordViewSet, basename='settlement')

urlpatterns = [
    # GET    /api/settlements/groups/{group_id}/balances/  - Group balances + suggested transfers
    path('groups/<uuid:group_id>/balances/', views.group_balances, name='group-balances'),
    # GET    /api/settlements/global/                       - Cross-group view for current user
    path('global/', views.global_balances, name='global-balances'),

    # GET    /api/settlements/records/                      - List settlements
    # POST   /api/settlements/records/                      - Record a settlement
    # GET    /api/settlements/records/{id}/                 - Settlement with audit trail
    # POST   /api/settlements/records/{id}/mark_paid/       - Payer marks as paid
    # POST   /api/settlements/records/{id}/confirm/         - Receiver confirms
    # POST   /api/settlements/records/{id}/cancel/          - Either party cancels
    # GET    /api/settlements/records/{id}/payment_link/    - UPI deep links
    # GET    /api/settlements/records/{id}/qr_code/         - UPI QR code (PNG)
    path('', include(router.urls)),
]
