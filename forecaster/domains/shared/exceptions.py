class DomainException(Exception):
    pass


class InvalidMatchDataException(DomainException):
    pass


class InsufficientDataException(DomainException):
    pass


class ArtifactNotFoundException(DomainException):
    """Raised when a required gameweek artifact (matches, results, ...) is missing."""

    pass


class InfrastructureException(Exception):
    pass


class DataSourceException(InfrastructureException):
    """Raised when the external fixture provider fails."""

    pass


class StorageException(InfrastructureException):
    pass
