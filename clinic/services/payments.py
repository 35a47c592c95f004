"""
Payment record operations.

Reads hand back payments with their patient and appointment already
joined so serializers can nest them without extra queries.  Updates
replace the mutable attributes only; the patient and appointment links
are fixed once a payment is recorded.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from django.db import DatabaseError, transaction
from rest_framework.exceptions import NotFound

from clinic.exceptions import StorageError
from clinic.models import Payment

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ('amount', 'payment_method', 'payment_status', 'transaction_date', 'remarks')


def _enriched(qs):
    return qs.select_related('patient', 'appointment')


def list_payments():
    return _enriched(Payment.active.all()).order_by('-transaction_date', '-id')


def get_payment(pk) -> Payment:
    payment = _enriched(Payment.active.filter(pk=pk)).first()
    if not payment:
        raise NotFound('Payment record not found or archived.')
    return payment


def create_payment(data: Dict[str, Any]) -> Payment:
    fields = {key: data.get(key) for key in MUTABLE_FIELDS}
    fields['patient_id'] = data['patient_id']
    fields['appointment_id'] = data.get('appointment_id')
    fields['is_archived'] = False
    try:
        with transaction.atomic():
            payment = Payment.objects.create(**fields)
    except DatabaseError as exc:
        raise StorageError('Failed to create payment record.') from exc
    logger.info("Recorded payment %s for patient %s", payment.pk, payment.patient_id)
    return payment


def update_payment(pk, data: Dict[str, Any]) -> Payment:
    payment = Payment.active.filter(pk=pk).first()
    if not payment:
        raise NotFound('Payment record not found or archived.')
    for key in MUTABLE_FIELDS:
        setattr(payment, key, data.get(key))
    try:
        with transaction.atomic():
            payment.save(update_fields=list(MUTABLE_FIELDS) + ['updated_at'])
    except DatabaseError as exc:
        raise StorageError('Failed to update payment record.') from exc
    logger.info("Updated payment %s", payment.pk)
    return payment


def archive_payment(pk) -> Payment:
    # Looked up without the active filter so repeated archives succeed
    payment = Payment.objects.filter(pk=pk).first()
    if not payment:
        raise NotFound('Payment record not found.')
    payment.is_archived = True
    try:
        payment.save(update_fields=['is_archived', 'updated_at'])
    except DatabaseError as exc:
        raise StorageError('Failed to archive payment record.') from exc
    logger.info("Archived payment %s", payment.pk)
    return payment
