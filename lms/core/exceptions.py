
class LMSAPIError(Exception):
    status_code = 500

class InvalidRequestError(LMSAPIError):
    status_code = 400

class NotFoundError(LMSAPIError):
    status_code = 404

class BookNotFoundError(NotFoundError): pass

class UserNotFoundError(NotFoundError): pass

class TransactionNotFoundError(NotFoundError): pass

class NoCopiesAvailableError(LMSAPIError):
    status_code = 400

class ActiveLoanExistsError(LMSAPIError):
    status_code = 400

class AlreadyReturnedError(LMSAPIError):
    status_code = 400

class ConflictError(LMSAPIError):
    status_code = 409

class BookInUseError(ConflictError): pass

class EmailExistsError(ConflictError): pass

class DatabaseError(LMSAPIError):
    status_code = 500
