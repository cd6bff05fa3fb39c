class BlogError(Exception):
    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class ValidationFailure(BlogError):
    status_code = 400

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class MalformedStructuredData(BlogError):
    status_code = 400

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field} JSON: {reason}")
        self.field = field
        self.reason = reason


class NotFound(BlogError):
    status_code = 404

    def __init__(self, what: str = "Blog", key=None):
        message = f"{what} not found" if key is None else f"{what} not found: {key}"
        super().__init__(message)
        self.key = key


class StorageUnavailable(BlogError):
    status_code = 503

    def __init__(self, message: str = "Database temporarily unavailable. Please try again later."):
        super().__init__(message)


class DuplicateKey(BlogError):
    status_code = 500

    def __init__(self, slug: str):
        super().__init__(f"Duplicate slug: {slug}")
        self.slug = slug


class AuthenticationError(BlogError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UploadError(BlogError):
    status_code = 400
