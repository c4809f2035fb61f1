# utils/errors.py
"""
Application error taxonomy.

Services raise these; main.py turns them into JSON responses of the form
{"success": false, "error": "<message>"}. Messages are user-facing (Thai).
"""
from typing import Any, Optional


class AppError(Exception):
     """Base class for errors that map to an HTTP status."""

     status_code = 500

     def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
          super().__init__(message)
          self.message = message
          if status_code is not None:
               self.status_code = status_code
          self.details = details


class ValidationError(AppError):
     status_code = 400


class AuthenticationError(AppError):
     status_code = 401

     def __init__(self, message: str = "ไม่ได้รับอนุญาต", details: Any = None):
          super().__init__(message, details=details)


class AuthorizationError(AppError):
     status_code = 403

     def __init__(self, message: str = "ไม่มีสิทธิ์ดำเนินการ", details: Any = None):
          super().__init__(message, details=details)


class NotFoundError(AppError):
     status_code = 404


class ConflictError(AppError):
     status_code = 409
