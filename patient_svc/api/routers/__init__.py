"""
API routers module.
"""
from patient_svc.api.routers.health import router as health_router
from patient_svc.api.routers.images import router as images_router
from patient_svc.api.routers.patients import router as patients_router

__all__ = ["health_router", "images_router", "patients_router"]
