"""
Error taxonomy. Each error maps to the HTTP status the app answers with.
"""


class AnalyticsError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidRequest(AnalyticsError):
    status_code = 400
    message = "Invalid JSON"


class InvalidTrackingID(AnalyticsError):
    status_code = 400
    message = "Invalid tracking ID"


class StoreUnavailable(AnalyticsError):
    status_code = 500
    message = "Server error: analytics store unavailable"


class TemplateRenderError(AnalyticsError):
    status_code = 500
    message = "Error rendering template"
