"""
Payment record views.

Reads return each payment with its ``patient`` and ``appointment``
embedded.  Updates replace amount, method, status, date and remarks; the
patient and appointment a payment belongs to cannot be changed here.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view

from ..responses import success
from ..serializers.payment import (
    PaymentCreateSerializer,
    PaymentRecordSerializer,
    PaymentSerializer,
    PaymentUpdateSerializer,
)
from ..services import payments as payment_service


@api_view(['GET', 'POST'])
def payments(request):
    if request.method == 'GET':
        qs = payment_service.list_payments()
        return success(PaymentSerializer(qs, many=True).data)

    data = PaymentCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    payment = payment_service.create_payment(data.validated_data)
    return success(
        PaymentRecordSerializer(payment).data,
        'Payment recorded successfully!',
        status.HTTP_201_CREATED,
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
def payment_detail(request, pk: int):
    if request.method == 'GET':
        return success(PaymentSerializer(payment_service.get_payment(pk)).data)

    if request.method == 'DELETE':
        payment_service.archive_payment(pk)
        return success(message='Payment archived successfully.')

    payment_service.get_payment(pk)
    data = PaymentUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    payment = payment_service.update_payment(pk, data.validated_data)
    return success(PaymentRecordSerializer(payment).data, 'Payment updated successfully!')
