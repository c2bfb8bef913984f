class TrabalhosException(Exception):
    status_code = 500
    error_type = 'internal_error'

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(TrabalhosException):
    status_code = 400
    error_type = 'validation_error'


class AuthorizationError(TrabalhosException):
    status_code = 403
    error_type = 'permission_error'


class NotFoundError(TrabalhosException):
    status_code = 404
    error_type = 'not_found'


class StateConflictError(TrabalhosException):
    """Ação não permitida no estado atual do ciclo de vida (ex.: edição após o prazo)."""
    status_code = 409
    error_type = 'state_conflict'


class StorageError(TrabalhosException):
    status_code = 500
    error_type = 'storage_error'


class DatabaseError(StorageError):
    pass


class FileStorageError(StorageError):
    def __init__(self, caminho: str, reason: str):
        message = f"Erro ao acessar o arquivo '{caminho}': {reason}"
        details = {'caminho': caminho, 'reason': reason}
        super().__init__(message, details)
