# ============================================================================

class IntelligentQueryError(Exception):
    """Base error for the query pipeline"""


class InvalidInput(IntelligentQueryError):
    """Batch request is missing its document text or questions"""


class ModelUnavailable(IntelligentQueryError):
    """Text generation service could not be reached or returned no usable payload"""


class MalformedModelOutput(IntelligentQueryError):
    """Model text did not contain a parseable JSON object"""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class DocumentUnavailable(IntelligentQueryError):
    """Document could not be downloaded or is too large"""

# ============================================================================
