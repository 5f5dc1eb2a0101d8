"""
Knowledge Base Membership

This module provides:
- The classifier interface deciding whether URIs belong to well-known KBs
- A white list based implementation with subdomain tolerant prefix matching
"""

from knowledge_bases.base import UriKBClassifier
from knowledge_bases.classifier import SimpleWhiteListBasedUriKBClassifier

__all__ = [
    'UriKBClassifier',
    'SimpleWhiteListBasedUriKBClassifier'
]
