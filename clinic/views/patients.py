"""
Patient account views.

``/api/patients`` lists active patients (``GET``) or opens a new account
(``POST``, JSON or multipart when a ``profile_img`` is attached).
``/api/patients/<id>`` reads, updates or archives a single account.
Archived accounts are invisible to reads and updates but can be archived
again without error.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view

from ..responses import success
from ..serializers.patient import PatientSerializer, PatientWriteSerializer
from ..services import patients as patient_service


@api_view(['GET', 'POST'])
def patients(request):
    if request.method == 'GET':
        qs = patient_service.list_patients()
        return success(PatientSerializer(qs, many=True).data)

    data = PatientWriteSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    patient = patient_service.create_account(data.validated_data)
    return success(
        PatientSerializer(patient).data,
        'Patient account created successfully!',
        status.HTTP_201_CREATED,
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
def patient_detail(request, pk: int):
    if request.method == 'GET':
        return success(PatientSerializer(patient_service.get_patient(pk)).data)

    if request.method == 'DELETE':
        patient_service.archive_patient(pk)
        return success(message='Patient account archived successfully.')

    # Resolve the active record first so a missing id answers 404, not 422
    current = patient_service.get_patient(pk)
    data = PatientWriteSerializer(current, data=request.data)
    data.is_valid(raise_exception=True)
    patient = patient_service.update_patient(pk, data.validated_data)
    return success(PatientSerializer(patient).data, 'Patient profile updated successfully!')
