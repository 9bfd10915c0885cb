# hypertension_coach/common/custom_exception.py
"""
Exception hierarchy for the coach backend.

CustomException records where the active traceback was raised so log lines
point at the failing call even after the error crosses a route boundary.
"""
import sys
from typing import List, Optional


class CustomException(Exception):
    def __init__(self, message: str, error_detail: Optional[BaseException] = None):
        self.message = message
        self.error_detail = error_detail
        self.error_message = self.get_detailed_error_message(message, error_detail)
        super().__init__(self.error_message)

    @staticmethod
    def get_detailed_error_message(message: str, error_detail: Optional[BaseException]) -> str:
        _, _, exc_tb = sys.exc_info()
        if exc_tb is None:
            return message if error_detail is None else f"{message} | Error: {error_detail}"
        file_name = exc_tb.tb_frame.f_code.co_filename
        line_number = exc_tb.tb_lineno
        return f"{message} | Error: {error_detail} | File: {file_name} | Line: {line_number}"

    def __str__(self):
        return self.error_message


class IncompleteAssessmentError(CustomException):
    """Raised before scoring when any questionnaire answer is missing or unrecognised."""

    def __init__(self, missing_fields: List[str], invalid_fields: Optional[List[str]] = None):
        self.missing_fields = list(missing_fields)
        self.invalid_fields = list(invalid_fields or [])
        parts = []
        if self.missing_fields:
            parts.append(f"missing: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append(f"invalid: {', '.join(self.invalid_fields)}")
        super().__init__("Assessment incomplete (" + "; ".join(parts) + ")")


class ChatBusyError(CustomException):
    """A chat request is already in flight for this session."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"A coach request is already in progress for session {session_id}")


class GatewayError(CustomException):
    """Transport or HTTP failure talking to the completion service."""

    def __init__(self, message: str, error_detail: Optional[BaseException] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, error_detail)
