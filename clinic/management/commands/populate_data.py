"""
Management command to populate the database with demo data.
"""
from datetime import timedelta
from decimal import Decimal
import random

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Appointment, Patient, Payment

DEMO_PATIENTS = [
    ('Jane Doe', 34, 'Female', 'jane.doe@example.com', '555-0101', '12 Elm Street'),
    ('John Smith', 52, 'Male', 'john.smith@example.com', '555-0102', '48 Oak Avenue'),
    ('Alex Morgan', 27, 'Other', 'alex.morgan@example.com', '555-0103', '7 Pine Road'),
    ('Maria Garcia', 61, 'Female', 'maria.garcia@example.com', '555-0104', '90 Birch Lane'),
    ('Wei Chen', 45, 'Male', 'wei.chen@example.com', '555-0105', '3 Cedar Court'),
]


class Command(BaseCommand):
    help = 'Populate database with demo patients, appointments and payments'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='secret1', help='Password given to every demo patient')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        patients = self.create_patients(options['password'])
        appointments = self.create_appointments(patients, rng)
        payments = self.create_payments(patients, appointments, rng)

        self.stdout.write(self.style.SUCCESS(
            f'Done: {len(patients)} patients, {len(appointments)} appointments, {len(payments)} payments'
        ))

    def create_patients(self, password):
        patients = []
        hashed = make_password(password)
        for full_name, age, gender, email, phone, address in DEMO_PATIENTS:
            # Keyed on email so the command can be re-run
            patient, created = Patient.objects.get_or_create(
                email=email,
                defaults={
                    'full_name': full_name,
                    'age': age,
                    'gender': gender,
                    'phone_number': phone,
                    'address': address,
                    'password': hashed,
                },
            )
            if created:
                self.stdout.write(f'  patient {patient.full_name}')
            patients.append(patient)
        return patients

    def create_appointments(self, patients, rng):
        appointments = []
        now = timezone.now()
        for patient in patients:
            if patient.appointments.exists():
                appointments.extend(patient.appointments.all())
                continue
            appointments.append(Appointment.objects.create(
                patient=patient,
                appointment_date=now + timedelta(days=rng.randint(-30, 30)),
                reason=rng.choice(['Check-up', 'Follow-up', 'Consultation', 'Lab results']),
                status=rng.choice([c[0] for c in Appointment.STATUS_CHOICES]),
            ))
        return appointments

    def create_payments(self, patients, appointments, rng):
        payments = []
        today = timezone.localdate()
        by_patient = {a.patient_id: a for a in appointments}
        for patient in patients:
            if patient.payments.exists():
                payments.extend(patient.payments.all())
                continue
            for i in range(2):
                payments.append(Payment.objects.create(
                    patient=patient,
                    appointment=by_patient.get(patient.id) if i == 0 else None,
                    amount=Decimal(rng.randint(20, 500)),
                    payment_method=rng.choice([c[0] for c in Payment.METHOD_CHOICES]),
                    payment_status=rng.choice([c[0] for c in Payment.STATUS_CHOICES]),
                    transaction_date=today - timedelta(days=rng.randint(0, 60)),
                    remarks='Demo payment',
                ))
        return payments
