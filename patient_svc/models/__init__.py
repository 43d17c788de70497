"""
Domain models for the patient records service.
"""
from patient_svc.models.image import ImageUpload
from patient_svc.models.patient import Patient, PatientFields

__all__ = ["ImageUpload", "Patient", "PatientFields"]
