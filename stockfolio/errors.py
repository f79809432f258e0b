class StockfolioError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StockfolioError):
    status_code = 400


class AuthError(StockfolioError):
    status_code = 401


class ForbiddenError(AuthError):
    status_code = 403


class NotFoundError(StockfolioError):
    status_code = 404


class UpstreamError(StockfolioError):
    status_code = 502


class StoreError(StockfolioError):
    status_code = 500
