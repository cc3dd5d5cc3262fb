"""Exceptions raised by the relay core."""


class ClientInputError(Exception):
    """The caller sent something the relay refuses; reported to that caller only."""


class EmptyMessageError(ClientInputError):
    pass


class NicknameError(ClientInputError):
    pass


class ColorError(ClientInputError):
    pass


class ImageTooLargeError(ClientInputError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"Image too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class ResourceError(Exception):
    """Reading or parsing an upload failed on the server side."""
