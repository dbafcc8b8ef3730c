"""Shared utility functions for the Claims Intake backend."""

from .phone import format_phone_number

__all__ = ["format_phone_number"]
