"""Importer error taxonomy.

Every failure the importer can surface is an ``ImporterError`` carrying the
HTTP status and user-facing message the API returns for it.
"""


class ImporterError(Exception):
    """Base class for import failures."""

    http_status: int = 500
    user_message: str = "Import failed. Please try again later."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class InvalidCredentials(ImporterError):
    """The retailer explicitly rejected the email/password."""

    http_status = 401
    user_message = "Login failed. Please check your username and password."


class LoginFailed(ImporterError):
    """Login did not succeed for an unrecognized reason (timeout, unexpected page)."""

    http_status = 401
    user_message = "Login failed. Please check your username and password."


class ChallengeRequired(ImporterError):
    """Two-factor authentication or CAPTCHA was presented; not supported."""

    http_status = 422
    user_message = (
        "Two-factor authentication or CAPTCHA detected. "
        "Please complete the sign-in manually and try again later."
    )


class BrowserError(ImporterError):
    """The browser or page failed in a way unrelated to the user's account."""


class NavigationTimeout(BrowserError):
    """A navigation or wait exceeded its bounded timeout."""


class FieldNotFound(BrowserError):
    """None of the candidate selectors for a form field resolved."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Could not find {field} field on login page")


class ImportCancelled(ImporterError):
    """The import was cancelled or ran past its deadline."""

    user_message = "Import was cancelled before it completed."


class ScrapeFailed(ImporterError):
    """Any other failure while scraping."""


class UnsupportedRetailer(ImporterError):
    http_status = 400

    def __init__(self, retailer: str, supported: list[str]):
        self.retailer = retailer
        self.supported = supported
        super().__init__(
            f"Unsupported retailer: {retailer}. "
            f"Supported retailers: {', '.join(supported)}"
        )


class RetailerNotImplemented(ImporterError):
    http_status = 501

    def __init__(self, retailer: str):
        self.retailer = retailer
        super().__init__(f"Importing from {retailer} is not yet implemented.")
