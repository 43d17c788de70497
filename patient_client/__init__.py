"""
Async HTTP client for the Patient Records API.
"""
from patient_client.patient_api_client import PatientAPIClient, get_patient_api_client

__all__ = ["PatientAPIClient", "get_patient_api_client"]
