"""Database exception definitions"""
from bgpsec_filter.utils.error_handling import ErrorSeverity, FilterError


class DatabaseError(FilterError):
    """Base database exception"""
    pass


class SchemaError(DatabaseError):
    """Schema initialization or migration error"""

    def __init__(self, message: str, technical_details: str = None):
        super().__init__(
            message, ErrorSeverity.FATAL,
            "Check the database path and file permissions",
            technical_details
        )


class StoreUnavailable(DatabaseError):
    """Filter store I/O or transaction failure; the stored state is unchanged"""

    def __init__(self, message: str, technical_details: str = None):
        super().__init__(
            message, ErrorSeverity.ERROR,
            "The operation was not applied and may be retried",
            technical_details
        )
