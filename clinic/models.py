"""
Database models for the hospital management backend.

Patients and payments are never physically deleted through the API.
Both carry an ``is_archived`` flag; the ``active`` manager hides archived
rows and is what the default read paths use.  ``objects`` still sees every
row so that archiving stays idempotent.
"""
from __future__ import annotations

from django.db import models
from django.db.models.functions import Lower


class ActiveManager(models.Manager):
    """Manager returning only rows that have not been archived."""

    def get_queryset(self):
        return super().get_queryset().filter(is_archived=False)


class Patient(models.Model):
    """A patient account.

    ``password`` only ever holds a salted one-way hash.  ``profile_img`` is
    the path of the stored image relative to the blob store root, e.g.
    ``hms_files/patient_3f2a...png``.
    """
    GENDER_CHOICES = [
        ('Male', 'Male'),
        ('Female', 'Female'),
        ('Other', 'Other'),
    ]
    full_name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, null=True, blank=True)
    # Unique across archived and active rows alike, ignoring case
    email = models.EmailField(max_length=255, unique=True)
    phone_number = models.CharField(max_length=20, null=True, blank=True)
    address = models.CharField(max_length=255, null=True, blank=True)
    password = models.CharField(max_length=128)
    profile_img = models.CharField(max_length=255, null=True, blank=True)
    is_archived = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        db_table = 'patients'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(Lower('email'), name='patient_email_ci_unique'),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"


class Appointment(models.Model):
    """An appointment a payment may be attached to.

    Appointments have no API of their own here; they are managed through
    the admin site and only read when enriching payments.
    """
    STATUS_CHOICES = [
        ('Scheduled', 'Scheduled'),
        ('Completed', 'Completed'),
        ('Cancelled', 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    appointment_date = models.DateTimeField()
    reason = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Scheduled')
    is_archived = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointments'
        ordering = ['-appointment_date']

    def __str__(self) -> str:
        return f"Appointment {self.pk} for patient {self.patient_id} ({self.status})"


class Payment(models.Model):
    """A payment transaction made by a patient."""
    METHOD_CHOICES = [
        ('Cash', 'Cash'),
        ('Card', 'Card'),
        ('Online', 'Online'),
        ('Insurance', 'Insurance'),
    ]
    STATUS_CHOICES = [
        ('Pending', 'Pending'),
        ('Paid', 'Paid'),
        ('Failed', 'Failed'),
        ('Refunded', 'Refunded'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='payments')
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='payments'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    payment_status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    transaction_date = models.DateField(db_index=True)
    remarks = models.TextField(null=True, blank=True)
    is_archived = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        db_table = 'payments'
        ordering = ['-transaction_date', '-id']
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gte=0), name='payment_amount_non_negative'),
        ]

    def __str__(self) -> str:
        return f"Payment {self.pk}: {self.amount} ({self.payment_status})"
