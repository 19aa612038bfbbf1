class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a client addresses a table or session that does not exist."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class LastTableRemovalError(AppError):
    """Raised when removing a table would leave the collection empty."""
    def __init__(self, table_id: str):
        super().__init__(
            "The last remaining timetable cannot be removed",
            status_code=409,
            details={"table_id": table_id},
        )

class CatalogLoadError(AppError):
    """Raised when a single catalog source cannot be fetched or decoded."""
    def __init__(self, source: str, reason: str):
        super().__init__(f"Catalog source {source} failed: {reason}", status_code=502, details={"source": source})
