"""
Storefront Wizard core.

Product-link classification, canonicalization and debounced validation for
the storefront wizard, plus the progress orchestrator that drives the
generation screen.
"""

__version__ = "1.0.0"
__author__ = "Storefront Wizard Team"

__all__ = ["__version__"]
