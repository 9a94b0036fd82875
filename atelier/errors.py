"""Error taxonomy shared by the workflow, the storage adapters and the API."""


class AtelierError(Exception):
    """Base class for every error the application surfaces to a user."""

    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AtelierError):
    """Required form fields are missing or malformed.

    Raised before anything reaches persistence. ``fields`` names every
    offending field so the form can highlight all of them at once.
    """

    message = "Please fill in the required fields."

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = list(fields)
        if message is None:
            message = f"Missing or invalid fields: {', '.join(self.fields)}"
        super().__init__(message)


class AuthRequired(AtelierError):
    """A mutation was attempted without a valid admin session."""

    message = "You must be logged in to perform this action."


class UploadError(AtelierError):
    """An image could not be uploaded (too large or storage failure)."""

    message = "Failed to upload image. Please try again."

    def __init__(self, message: str | None = None, *, too_large: bool = False):
        super().__init__(message)
        self.too_large = too_large


class NotFoundError(AtelierError):
    """The targeted painting id does not exist (any more)."""

    message = "Painting not found."

    def __init__(self, painting_id: str, message: str | None = None):
        self.painting_id = painting_id
        super().__init__(message or f"Painting with ID {painting_id} not found")


class PersistenceError(AtelierError):
    """The document store failed to read or write."""

    message = "Failed to save painting. Please try again."


class EmailDeliveryError(AtelierError):
    """A notification email could not be dispatched. The message is lost."""

    message = "Failed to send message. Please try again."
