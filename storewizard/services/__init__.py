"""
Services package for the Storefront Wizard.

Services:
    - ValidationService: Debounced validation of the product link input
    - AutoCorrectionService: Delayed canonicalization of the product link
    - ProductPreviewService: Best-effort product preview fetcher
    - StoreGenerationService: Authoritative store generation call
"""

from storewizard.services.autocorrect_service import AutoCorrectionService
from storewizard.services.base import BackendClient
from storewizard.services.generation_service import StoreGenerationService
from storewizard.services.preview_service import (
    ProductPreviewService,
    clean_html_description,
)
from storewizard.services.validation_service import (
    ValidationMessages,
    ValidationService,
)

__all__ = [
    # Input
    "ValidationService",
    "ValidationMessages",
    "AutoCorrectionService",
    # Backend collaborators
    "BackendClient",
    "ProductPreviewService",
    "StoreGenerationService",
    "clean_html_description",
]
