"""Schemas package for API request/response models."""

from schemas.deal import (
    DealCreate,
    DealUpdate,
    DealResponse,
    DealListResponse,
    LineItemCreate,
    LineItemResponse,
    StatusUpdate,
    PdfResponse,
    PdfUrlUpdate,
    SignatureRequestCreate,
    SignatureRequestResponse,
    TokenVerificationResponse,
    SignatureSubmit,
    SignatureResponse,
)

__all__ = [
    "DealCreate",
    "DealUpdate",
    "DealResponse",
    "DealListResponse",
    "LineItemCreate",
    "LineItemResponse",
    "StatusUpdate",
    "PdfResponse",
    "PdfUrlUpdate",
    "SignatureRequestCreate",
    "SignatureRequestResponse",
    "TokenVerificationResponse",
    "SignatureSubmit",
    "SignatureResponse",
]
