"""
Django admin registrations for the clinic models.

Appointments have no API of their own, so the admin site is where they are
created and corrected.  The patient password hash is read-only here.
"""

from django.contrib import admin

from .models import Appointment, Patient, Payment


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'full_name', 'email', 'gender', 'age', 'is_archived', 'created_at')
    list_filter = ('is_archived', 'gender')
    search_fields = ('full_name', 'email', 'phone_number')
    readonly_fields = ('password', 'created_at', 'updated_at')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'appointment_date', 'status', 'is_archived')
    list_filter = ('status', 'is_archived')
    search_fields = ('patient__full_name', 'patient__email', 'reason')
    raw_id_fields = ('patient',)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'amount', 'payment_method', 'payment_status', 'transaction_date', 'is_archived')
    list_filter = ('payment_method', 'payment_status', 'is_archived')
    search_fields = ('patient__full_name', 'patient__email', 'remarks')
    raw_id_fields = ('patient', 'appointment')
    date_hierarchy = 'transaction_date'
