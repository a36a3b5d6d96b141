import logging
from io import BytesIO

from django.conf import settings
from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import serializers as drf_serializers
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import User
from apps.groups.services import GroupNotFoundError, NotMemberError
from .engine import format_major
from .exceptions import SettlementsServiceError
from .serializers import (
    GlobalBalancesSerializer,
    GroupBalancesSerializer,
    MarkPaidInputSerializer,
    PaymentLinkSerializer,
    SettlementCreateSerializer,
    SettlementDetailSerializer,
    SettlementFilterSerializer,
    SettlementRecordSerializer,
)
from .services import (
    UPIPaymentGenerator,
    cancel_settlement,
    compute_global_balances,
    compute_group_balances,
    confirm_settlement,
    create_settlement,
    get_settlement,
    list_settlements,
    mark_settlement_paid,
)


logger = logging.getLogger(__name__)


# Response serializers for API documentation
class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    code = drf_serializers.CharField()


def service_error_response(exc):
    """Translate a service exception into an error response."""
    if isinstance(exc, SettlementsServiceError):
        http_status, code = exc.status_code, exc.default_code
    elif isinstance(exc, GroupNotFoundError):
        http_status, code = status.HTTP_404_NOT_FOUND, 'group_not_found'
    elif isinstance(exc, NotMemberError):
        http_status, code = status.HTTP_403_FORBIDDEN, 'not_group_member'
    else:
        raise exc
    return Response({'error': str(exc), 'code': code}, status=http_status)


SERVICE_ERRORS = (SettlementsServiceError, GroupNotFoundError, NotMemberError)


def _member_entry(users, member_id, amount):
    return {
        'user': users[member_id],
        'amount': amount,
        'amount_display': format_major(amount),
    }


def _transfer_entry(users, transfer, group_id):
    return {
        'from_user': users[transfer.from_id],
        'to_user': users[transfer.to_id],
        'amount': transfer.amount,
        'amount_display': format_major(transfer.amount),
        'group': group_id,
    }


def _users_by_id(member_ids):
    return User.objects.in_bulk(list(member_ids))


class SettlementPagination(PageNumberPagination):
    """Custom pagination for settlements."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


@extend_schema(
    responses={200: GroupBalancesSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Net balance of every member of a group and the suggested transfers that settle them.",
    tags=['settlements'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def group_balances(request, group_id):
    """
    GET /api/settlements/groups/{group_id}/balances/
    """
    try:
        result = compute_group_balances(group_id=group_id, user=request.user)
    except SERVICE_ERRORS as e:
        return service_error_response(e)

    users = _users_by_id(result.balances)
    data = {
        'group': result.group_id,
        'currency': settings.SETTLEMENT_CURRENCY,
        'is_settled': not result.transfers,
        'total_spent': result.total_spent,
        'total_spent_display': format_major(result.total_spent),
        'balances': [
            {
                **_member_entry(users, member_id, amount),
                'paid': result.totals[member_id].paid,
                'owed': result.totals[member_id].owed,
            }
            for member_id, amount in result.balances.items()
        ],
        'transfers': [
            _transfer_entry(users, transfer, result.group_id)
            for transfer in result.transfers
        ],
    }
    return Response(GroupBalancesSerializer(data).data)


@extend_schema(
    responses={200: GlobalBalancesSerializer},
    description="The current user's debts with each counterpart, netted across all shared groups.",
    tags=['settlements'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_balances(request):
    """
    GET /api/settlements/global/
    """
    try:
        result = compute_global_balances(user=request.user)
    except SERVICE_ERRORS as e:
        return service_error_response(e)

    users = _users_by_id(result.balances)
    my_balance = result.balances.get(request.user.id, 0)
    data = {
        'currency': settings.SETTLEMENT_CURRENCY,
        'is_settled': not result.transfers,
        'my_balance': my_balance,
        'my_balance_display': format_major(my_balance),
        'groups': [group.id for group in result.groups],
        'balances': [
            _member_entry(users, member_id, amount)
            for member_id, amount in result.balances.items()
        ],
        'transfers': [
            _transfer_entry(users, transfer, transfer.group_id)
            for transfer in result.transfers
        ],
    }
    return Response(GlobalBalancesSerializer(data).data)


class SettlementRecordViewSet(viewsets.GenericViewSet):
    """
    ViewSet for settlement records.

    Settlements are never edited or deleted, only moved through statuses.

    list: Settlements visible to the user (filterable by group and status)
    create: Record a pending settlement (caller is the payer)
    retrieve: Get a settlement with its audit trail
    mark_paid: Payer reports the money as sent
    confirm: Receiver confirms the money arrived
    cancel: Either party withdraws an open settlement
    payment_link: UPI deep links for paying the receiver
    qr_code: UPI QR code as PNG
    """

    serializer_class = SettlementRecordSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = SettlementPagination
    lookup_value_regex = '[0-9a-f-]{36}'

    def get_queryset(self):
        filter_serializer = SettlementFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        return list_settlements(
            user=self.request.user,
            group_id=params.get('group'),
            status=params.get('status'),
        )

    @extend_schema(parameters=[SettlementFilterSerializer])
    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(SettlementRecordSerializer(page, many=True).data)
        return Response(SettlementRecordSerializer(queryset, many=True).data)

    @extend_schema(responses={200: SettlementDetailSerializer, 404: ErrorResponseSerializer})
    def retrieve(self, request, pk=None):
        try:
            settlement = get_settlement(settlement_id=pk, user=request.user)
        except SERVICE_ERRORS as e:
            return service_error_response(e)
        return Response(SettlementDetailSerializer(settlement).data)

    @extend_schema(
        request=SettlementCreateSerializer,
        responses={201: SettlementRecordSerializer, 409: ErrorResponseSerializer},
    )
    def create(self, request):
        """
        Record a settlement.

        POST /api/settlements/records/
        Body: {"group": "<uuid>", "to_user": "<uuid>", "amount": 15000}
        """
        serializer = SettlementCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            settlement = create_settlement(
                group_id=data['group'],
                from_user=request.user,
                to_user_id=data['to_user'],
                amount=data['amount'],
                method=data['method'],
                note=data.get('note', ''),
            )
        except SERVICE_ERRORS as e:
            return service_error_response(e)

        return Response(SettlementRecordSerializer(settlement).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=MarkPaidInputSerializer, responses={200: SettlementRecordSerializer})
    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """
        POST /api/settlements/records/{id}/mark_paid/
        Body: {"payment_reference": "UTR..."} (optional)
        """
        input_serializer = MarkPaidInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            settlement = mark_settlement_paid(
                settlement_id=pk,
                user=request.user,
                payment_reference=input_serializer.validated_data.get('payment_reference'),
            )
        except SERVICE_ERRORS as e:
            return service_error_response(e)
        return Response(SettlementRecordSerializer(settlement).data)

    @extend_schema(request=None, responses={200: SettlementRecordSerializer})
    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        """
        POST /api/settlements/records/{id}/confirm/
        """
        try:
            settlement = confirm_settlement(settlement_id=pk, user=request.user)
        except SERVICE_ERRORS as e:
            return service_error_response(e)
        return Response(SettlementRecordSerializer(settlement).data)

    @extend_schema(request=None, responses={200: SettlementRecordSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        POST /api/settlements/records/{id}/cancel/
        """
        try:
            settlement = cancel_settlement(settlement_id=pk, user=request.user)
        except SERVICE_ERRORS as e:
            return service_error_response(e)
        return Response(SettlementRecordSerializer(settlement).data)

    @extend_schema(responses={200: PaymentLinkSerializer, 400: ErrorResponseSerializer})
    @action(detail=True, methods=['get'])
    def payment_link(self, request, pk=None):
        """
        GET /api/settlements/records/{id}/payment_link/
        """
        try:
            settlement = get_settlement(settlement_id=pk, user=request.user)
            payload = UPIPaymentGenerator.generate_for_settlement(settlement)
        except SERVICE_ERRORS as e:
            return service_error_response(e)
        return Response(PaymentLinkSerializer(payload).data)

    @extend_schema(responses={(200, 'image/png'): OpenApiTypes.BINARY, 400: ErrorResponseSerializer})
    @action(detail=True, methods=['get'])
    def qr_code(self, request, pk=None):
        """
        GET /api/settlements/records/{id}/qr_code/
        """
        try:
            settlement = get_settlement(settlement_id=pk, user=request.user)
            payload = UPIPaymentGenerator.generate_for_settlement(settlement)
        except SERVICE_ERRORS as e:
            return service_error_response(e)

        buffer = UPIPaymentGenerator.generate_qr_image(payload['upi_link'], BytesIO())
        logger.debug("Generated QR code for settlement %s", settlement.id)
        return HttpResponse(buffer.getvalue(), content_type='image/png')
