"""
URL mappings for the clinic API.

Trailing slashes are deliberately omitted (``APPEND_SLASH`` is off).
"""
from django.urls import path, include

from .views import health
from .views.patients import patients, patient_detail
from .views.payments import payments, payment_detail


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Patients
    path('api/patients', patients, name='patients'),
    path('api/patients/<int:pk>', patient_detail, name='patient_detail'),
    # Payments
    path('api/payments', payments, name='payments'),
    path('api/payments/<int:pk>', payment_detail, name='payment_detail'),
]
