"""Configuration module for the Storefront Wizard core."""

from storewizard.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
