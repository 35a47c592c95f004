from decimal import ROUND_HALF_UP, Decimal

import bleach
from rest_framework import ISO_8601, serializers

from clinic.models import Appointment, Patient, Payment
from clinic.serializers.patient import PatientSerializer


CENT = Decimal('0.01')
# NUMERIC(12, 2) leaves ten whole digits
MAX_AMOUNT = Decimal('10000000000')


class PaymentUpdateSerializer(serializers.Serializer):
    """Mutable payment attributes.  All of them are replaced on update."""
    # Precision is not enforced on input; validate_amount rounds to cents
    amount = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=0)
    payment_method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    payment_status = serializers.ChoiceField(choices=Payment.STATUS_CHOICES)
    transaction_date = serializers.DateField(
        input_formats=[ISO_8601, '%Y-%m-%d %H:%M:%S', '%Y-%m-%dT%H:%M:%S'],
    )
    remarks = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_amount(self, v):
        if v < MAX_AMOUNT:
            v = v.quantize(CENT, rounding=ROUND_HALF_UP)
        if v >= MAX_AMOUNT:
            raise serializers.ValidationError('Ensure that there are no more than 10 digits before the decimal point.')
        return v

    def validate_remarks(self, v):
        if v is None:
            return None
        return bleach.clean(v.strip(), strip=True) or None


class PaymentCreateSerializer(PaymentUpdateSerializer):
    patient_id = serializers.IntegerField()
    appointment_id = serializers.IntegerField(required=False, allow_null=True)

    def validate_patient_id(self, v):
        # Any existing patient, archived or not
        if not Patient.objects.filter(pk=v).exists():
            raise serializers.ValidationError('The selected patient id is invalid.')
        return v

    def validate_appointment_id(self, v):
        if v is None:
            return None
        if not Appointment.objects.filter(pk=v).exists():
            raise serializers.ValidationError('The selected appointment id is invalid.')
        return v


class AppointmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Appointment
        fields = ['id', 'patient_id', 'appointment_date', 'reason', 'status', 'is_archived', 'created_at', 'updated_at']


class PaymentSerializer(serializers.ModelSerializer):
    """Payment with its patient and (optional) appointment attached."""
    patient_id = serializers.IntegerField(read_only=True)
    appointment_id = serializers.IntegerField(read_only=True, allow_null=True)
    patient = PatientSerializer(read_only=True)
    appointment = AppointmentSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'patient_id', 'appointment_id', 'amount', 'payment_method', 'payment_status',
            'transaction_date', 'remarks', 'is_archived', 'created_at', 'updated_at',
            'patient', 'appointment',
        ]


class PaymentRecordSerializer(serializers.ModelSerializer):
    """Payment columns only, as returned by write operations."""
    patient_id = serializers.IntegerField(read_only=True)
    appointment_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'patient_id', 'appointment_id', 'amount', 'payment_method', 'payment_status',
            'transaction_date', 'remarks', 'is_archived', 'created_at', 'updated_at',
        ]
