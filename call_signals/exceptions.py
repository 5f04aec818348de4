class AppError(Exception):
    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidRequestError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="INVALID_REQUEST")


class GatewayError(AppError):
    """The LLM provider call failed (timeout, auth, rate limit, bad request...)."""

    def __init__(self, message: str, kind: str = "unavailable"):
        self.kind = kind
        super().__init__(message, code="GATEWAY_ERROR")


class ParseError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="PARSE_ERROR")


class AnalysisError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="ANALYSIS_FAILED")
