class ServiceError(Exception):
    """Base class for domain errors raised by services."""


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class InvalidDataError(ServiceError):
    pass
