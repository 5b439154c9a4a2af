"""
Document records for the CRPT API.
"""

from .models import Document, Product
