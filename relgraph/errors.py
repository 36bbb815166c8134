"""Structured errors raised by the engine and rendered by the API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code = 400
    code = "app_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(self.code, message, details)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"


class CompanyNotFoundError(AppError):
    status_code = 404
    code = "company_not_found"

    def __init__(self, company_id: str):
        super().__init__(f"Company {company_id} not found", {"company_id": company_id})


class ContactNotFoundError(AppError):
    status_code = 404
    code = "contact_not_found"

    def __init__(self, contact_id: str):
        super().__init__(f"Contact {contact_id} not found", {"contact_id": contact_id})


class MeetingNotFoundError(AppError):
    status_code = 404
    code = "meeting_not_found"

    def __init__(self, meeting_id: str):
        super().__init__(f"Meeting {meeting_id} not found", {"meeting_id": meeting_id})


class InvalidMergeError(AppError):
    status_code = 400
    code = "invalid_merge"


class CompanyNameConflictError(AppError):
    status_code = 409
    code = "company_name_conflict"


class EmailOwnershipError(AppError):
    status_code = 409
    code = "email_owned_by_other_contact"

    def __init__(self, email: str, owner_id: str):
        super().__init__(
            f"Email {email} already belongs to another contact",
            {"email": email, "contact_id": owner_id},
        )


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)
