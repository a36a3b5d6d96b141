from rest_framework import mixins, status, viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.groups.services import GroupNotFoundError, NotMemberError
from .exceptions import (
    ExpenseNotFoundError,
    InvalidExpenseAmountError,
    InvalidSplitError,
    NoParticipantsError,
    UnknownParticipantError,
)
from .models import ExpenseRecord
from .serializers import (
    ExpenseCreateSerializer,
    ExpenseFilterSerializer,
    ExpenseRecordSerializer,
)
from .services import ExpenseSplitService


class ExpensePagination(PageNumberPagination):
    """Custom pagination for expenses."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ExpenseRecordViewSet(mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """
    ViewSet for expense records.

    Expenses are immutable once recorded, so there is no update or delete.

    list: Expenses in the user's groups (filterable by group)
    create: Record an expense and split it
    retrieve: Get a specific expense with its splits
    """

    serializer_class = ExpenseRecordSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = ExpensePagination
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        """Expenses of groups the user belongs to."""
        filter_serializer = ExpenseFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        queryset = (
            ExpenseRecord.objects
            .filter(group__memberships__user=self.request.user)
            .select_related('group', 'paid_by')
            .prefetch_related('splits__user')
            .distinct()
        )
        if params.get('group'):
            queryset = queryset.filter(group_id=params['group'])
        return queryset

    def retrieve(self, request, pk=None):
        try:
            expense = ExpenseSplitService.get_expense(pk, request.user)
        except ExpenseNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(ExpenseRecordSerializer(expense).data)

    @extend_schema(request=ExpenseCreateSerializer, responses={201: ExpenseRecordSerializer})
    def create(self, request):
        """
        Record an expense.

        POST /api/expenses/
        Body: {"group": "<uuid>", "amount": 30000, "split_type": "equal"}
        """
        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            expense, _ = ExpenseSplitService.create_group_expense(
                group_id=data['group'],
                paid_by_user=request.user,
                amount=data['amount'],
                description=data.get('description', ''),
                split_type=data['split_type'],
                split_members=data.get('split_members'),
                shares=data.get('shares'),
            )
        except GroupNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except NotMemberError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except (
            InvalidExpenseAmountError,
            InvalidSplitError,
            NoParticipantsError,
            UnknownParticipantError,
        ) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        expense = ExpenseSplitService.get_expense(expense.id, request.user)
        return Response(ExpenseRecordSerializer(expense).data, status=status.HTTP_201_CREATED)
