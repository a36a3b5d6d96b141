from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

router = DefaultRouter()
router.register(r'', views.ExpenseRecordViewSet, basename='expense')

urlpatterns = [
    # GET    /api/expenses/          - List expenses in user's groups
    # POST   /api/expenses/          - Record an expense (with split)
    # GET    /api/expenses/{id}/     - Get expense with splits
    path('', include(router.urls)),
]
