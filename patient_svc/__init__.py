"""
Patient Records API: patient CRUD over a relational record store with
images kept in an S3-compatible object store.
"""
__version__ = "1.0.0"
