from download_shields.models.errors import ErrorBody


class ResponseError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.body = ErrorBody(detail=detail)


class InvalidArgumentError(TypeError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.body = ErrorBody(detail=detail)


class UnsupportedFormatError(Exception):
    def __init__(self, extension: str | None) -> None:
        detail = f"Формат '{extension}' не поддерживается"
        super().__init__(detail)
        self.extension = extension
        self.body = ErrorBody(detail=detail)


class DownstreamFailureError(Exception):
    def __init__(self, resource: str, error: BaseException) -> None:
        detail = f"{resource}: {type(error).__name__}: {error}"
        super().__init__(detail)
        self.resource = resource
        self.error = error
        self.body = ErrorBody(detail=detail)
