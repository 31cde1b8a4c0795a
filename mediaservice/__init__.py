"""
Media ingestion service.
Downloads media files once, verifies their checksum, probes their properties
and records the outcome plus a status timeline in durable storage.
"""

__version__ = "1.0.0"
