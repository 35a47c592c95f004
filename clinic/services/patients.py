"""
Patient account operations.

Functions here take data that has already passed ``PatientWriteSerializer``
and apply the account rules: passwords are hashed before they reach the
database, new accounts start un-archived, and a replaced profile image has
its previous blob removed.  Archiving is a soft delete and never touches
the stored image.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from django.contrib.auth.hashers import make_password
from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import NotFound

from clinic.exceptions import ConflictError, StorageError
from clinic.models import Patient
from clinic.services.storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)

IMAGE_PREFIX = 'patient'
NOT_FOUND_MESSAGE = 'Patient not found.'
DUPLICATE_EMAIL_MESSAGE = 'The email has already been taken.'


def _conflict() -> ConflictError:
    return ConflictError(DUPLICATE_EMAIL_MESSAGE, errors={'email': [DUPLICATE_EMAIL_MESSAGE]})


def list_patients():
    return Patient.active.order_by('-created_at', '-id')


def get_patient(pk) -> Patient:
    patient = Patient.active.filter(pk=pk).first()
    if not patient:
        raise NotFound(NOT_FOUND_MESSAGE)
    return patient


def create_account(
    data: Dict[str, Any],
    *,
    hasher: Callable[[str], str] = make_password,
    blobs: Optional[BlobStore] = None,
) -> Patient:
    blobs = blobs or get_blob_store()
    fields = dict(data)
    fields.pop('password_confirmation', None)
    fields['password'] = hasher(fields['password'])
    fields['is_archived'] = False

    upload = fields.pop('profile_img', None)
    stored_path = None
    try:
        if upload is not None:
            stored_path = blobs.save(upload, IMAGE_PREFIX)
            fields['profile_img'] = stored_path
        with transaction.atomic():
            patient = Patient.objects.create(**fields)
    except IntegrityError as exc:
        blobs.discard(stored_path)
        raise _conflict() from exc
    except (DatabaseError, OSError) as exc:
        blobs.discard(stored_path)
        raise StorageError('Failed to create patient account.') from exc

    logger.info("Created patient %s", patient.pk)
    return patient


def update_patient(
    pk,
    data: Dict[str, Any],
    *,
    hasher: Callable[[str], str] = make_password,
    blobs: Optional[BlobStore] = None,
) -> Patient:
    """Apply a partial update to an active patient.

    Only keys present in ``data`` are written.  An empty or missing
    password leaves the stored hash alone.
    """
    blobs = blobs or get_blob_store()
    patient = get_patient(pk)

    fields = dict(data)
    fields.pop('password_confirmation', None)
    password = fields.pop('password', None)
    if password:
        fields['password'] = hasher(password)

    previous_path = patient.profile_img
    upload = fields.pop('profile_img', None)
    stored_path = None
    if upload is not None:
        # Old image goes first; a missing file is not an error
        blobs.discard(previous_path)
        try:
            stored_path = blobs.save(upload, IMAGE_PREFIX)
        except OSError as exc:
            raise StorageError('Failed to update patient profile.') from exc
        fields['profile_img'] = stored_path

    for key, value in fields.items():
        setattr(patient, key, value)
    try:
        with transaction.atomic():
            patient.save(update_fields=list(fields) + ['updated_at'])
    except DatabaseError as exc:
        blobs.discard(stored_path)
        if stored_path and previous_path:
            # Row still points at the blob removed above
            logger.warning("Patient %s update failed; stored image %s was already removed", pk, previous_path)
        if isinstance(exc, IntegrityError):
            raise _conflict() from exc
        raise StorageError('Failed to update patient profile.') from exc

    logger.info("Updated patient %s (fields: %s)", patient.pk, ', '.join(sorted(fields)))
    return patient


def archive_patient(pk) -> Patient:
    # Deliberately not restricted to active rows: archiving twice is a no-op
    patient = Patient.objects.filter(pk=pk).first()
    if not patient:
        raise NotFound(NOT_FOUND_MESSAGE)
    patient.is_archived = True
    try:
        patient.save(update_fields=['is_archived', 'updated_at'])
    except DatabaseError as exc:
        raise StorageError('Failed to archive patient account.') from exc
    logger.info("Archived patient %s", patient.pk)
    return patient
