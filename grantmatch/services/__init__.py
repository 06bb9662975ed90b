"""
Services Package
================
External-model collaborators layered over the matching engine.
"""

from .explanation_service import ExplanationService

__all__ = ['ExplanationService']
