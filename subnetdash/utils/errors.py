from typing import Optional, Any
from datetime import datetime

class SubnetDashError(Exception):
    """Base exception for all subnetdash errors."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.timestamp = datetime.now()

class NetworkError(SubnetDashError):
    """Raised when a network request fails (e.g. connection error, timeout)."""
    def __init__(self, message: str, url: Optional[str] = None, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.url = url
        self.original_error = original_error

    def __str__(self):
        return f"NetworkError(url={self.url}): {self.message}"

class ValidationError(SubnetDashError):
    """Raised when a payload does not have the expected summary/miners shape."""
    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source

    def __str__(self):
        return f"ValidationError(source={self.source}): {self.message}"

class ApiResponseError(SubnetDashError):
    """Raised when the API returns an error response (non-2xx or malformed)."""
    def __init__(self, message: str, status_code: int, url: str, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body

    def __str__(self):
        return f"ApiResponseError(status={self.status_code}, url={self.url}): {self.message}"
