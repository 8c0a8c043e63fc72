"""Reasoning service port and adapters."""

from .base import ReasoningService, sniff_image_mime, to_data_url
from .openai_client import OpenAIReasoningService

__all__ = [
    "OpenAIReasoningService",
    "ReasoningService",
    "sniff_image_mime",
    "to_data_url",
]
