from typing import Dict, Optional

# Errors surfaced to the catalog page. Each carries a translation key; the
# page renders translate(err.key, language).


class StorefrontError(Exception):
    key = "errors.generic"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.key)
        self.detail = detail


class ValidationError(StorefrontError):
    key = "errors.validation"

    def __init__(self, fields: Dict[str, str]):
        super().__init__(", ".join(sorted(fields)))
        self.fields = dict(fields)


class PayloadTooLarge(StorefrontError):
    key = "errors.size_exceeded"

    def __init__(self, size: int, limit: int):
        super().__init__(f"{size} bytes exceeds the {limit} byte limit")
        self.size = size
        self.limit = limit


class ImageProcessingError(StorefrontError):
    key = "errors.upload_failed"


class UpstreamWriteFailure(StorefrontError):
    key = "errors.save_failed"


class UpstreamReadFailure(StorefrontError):
    key = "errors.load_failed"


class DuplicateNameError(StorefrontError):
    key = "errors.category_exists"

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


class NotAuthorized(StorefrontError):
    key = "errors.admin_only"
