class PackageInvalid(Exception):
    """
    Raised when an extracted package breaks one or more structural rules.

    ``errors`` holds every violation found, in the order the rules ran, so the
    requester can fix all of them at once.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Not a valid Ocrd-Zip: " + ", ".join(self.errors))


class PreviousVersionNotFound(Exception):
    """
    Raised when an import names a previous version which is not archived
    """

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Previous version '{identifier}' does not exist")


class InvalidTransition(Exception):
    pass


class ServiceError(Exception):
    """
    Base class for failed calls to an external service. These are considered
    transient and are retried by the bounded retry policy.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class IdentifierServiceError(ServiceError):
    pass


class StorageServiceError(ServiceError):
    pass


class IndexerError(ServiceError):
    pass


class DescriptorNotAvailable(StorageServiceError):
    """
    Raised while polling for a stored METS file that is not retrievable yet
    """


class GaveUp(Exception):
    """
    Raised by the polling policy when its overall time budget is used up
    """

    def __init__(self, message, last_exception=None):
        super().__init__(message)
        self.last_exception = last_exception
