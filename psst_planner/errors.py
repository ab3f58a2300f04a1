"""Failure classes surfaced by the generation core.

Every class carries a stable ``code`` for API consumers and a human-readable
``message`` that can be shown to the user as-is.
"""


class PlanGenerationError(Exception):
    code = "generation_failed"
    default_message = "Business plan generation failed."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingCredential(PlanGenerationError):
    code = "missing_credential"
    default_message = (
        "No API key is configured. Open the settings and enter a Gemini API key."
    )


class InvalidCredential(PlanGenerationError):
    code = "invalid_credential"
    default_message = (
        "The API key was rejected by the generation service. Please re-enter it."
    )


class TransportError(PlanGenerationError):
    code = "transport_error"
    default_message = "Network or generation service error. Please try again."


class EmptyResponse(PlanGenerationError):
    code = "empty_response"
    default_message = "The generation service returned nothing usable."


class MalformedJSON(PlanGenerationError):
    code = "malformed_json"
    default_message = (
        "The generation service returned a plan that does not match the "
        "required structure."
    )


class AttachmentError(PlanGenerationError):
    code = "attachment_error"
    default_message = "The attachment could not be read."

    def __init__(self, filename: str, message: str = None):
        self.filename = filename
        super().__init__(message or f"Could not read attachment '{filename}'.")
