from .patient import PatientSerializer, PatientWriteSerializer
from .payment import (
    AppointmentSerializer,
    PaymentCreateSerializer,
    PaymentRecordSerializer,
    PaymentSerializer,
    PaymentUpdateSerializer,
)

__all__ = [
    "PatientSerializer",
    "PatientWriteSerializer",
    "AppointmentSerializer",
    "PaymentCreateSerializer",
    "PaymentRecordSerializer",
    "PaymentSerializer",
    "PaymentUpdateSerializer",
]
