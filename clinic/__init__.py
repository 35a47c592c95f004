"""Clinic application: patient accounts and payment records.

This package contains the models, serializers, services, views and route
registrations for the patient and payment resources.
"""
