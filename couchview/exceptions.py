class CouchDBException(Exception):
    """There was an ambiguous error interacting with CouchDB."""
    pass


class InvalidArgumentError(CouchDBException, ValueError):
    """A local argument was empty or of the wrong type; no request was sent."""
    pass


class ValidationError(CouchDBException):
    """An embedded map or reduce function was rejected before being stored."""
    pass


class FunctionSyntaxError(ValidationError):
    """The function source does not parse."""

    def __init__(self, diagnostic):
        self.diagnostic = diagnostic
        super(FunctionSyntaxError, self).__init__(diagnostic)


class FunctionShapeError(ValidationError):
    """The function source parses but does not have the required signature."""

    def __init__(self, definition):
        self.definition = definition
        super(FunctionShapeError, self).__init__(
            "The function must be defined like: {}".format(definition))


class UpdateConflict(CouchDBException):
    """A revision conflict occurred."""
    pass


class MissingResource(CouchDBException):
    """A requested resource (database, document, view) does not exist"""
    pass


class MissingDocument(MissingResource):
    """A requested document does not exist."""
    pass


class MissingDatabase(MissingResource):
    """A requested database does not exist."""
    pass


class MissingView(MissingResource):
    """A requested view does not exist"""
    pass


class DatabaseExists(CouchDBException):
    """Could not create a database, it exists already."""
    pass


class LoginFailed(CouchDBException):
    """Could not authenticate the provided user."""
    pass


class RequestsException(CouchDBException):
    """There was an ambiguous exception that occurred while handling your request."""
    pass


class Timeout(RequestsException):
    """The request timed out."""
    pass


class RemoteQueryError(RequestsException):
    """The server answered with a non-success status.

    ``error`` and ``reason`` are the fields of CouchDB's error body, kept
    exactly as the server sent them (`None` when the body had no such field).
    """
    status_code = None

    def __init__(self, status_code=None, error=None, reason=None):
        if status_code is not None:
            self.status_code = status_code
        self.error = error
        self.reason = reason
        if error or reason:
            message = "{} {}: {}".format(self.status_code, error, reason)
        else:
            message = "HTTP error {}".format(self.status_code)
        super(RemoteQueryError, self).__init__(message)


class HTTPBadRequest(RemoteQueryError):
    """400 Bad Request"""
    status_code = 400


class HTTPUnauthorized(RemoteQueryError):
    """401 Unauthorized"""
    status_code = 401


class HTTPForbidden(RemoteQueryError):
    """403 Forbidden"""
    status_code = 403


class HTTPNotFound(RemoteQueryError):
    """404 Not Found"""
    status_code = 404


class HTTPConflict(RemoteQueryError):
    """409 Conflict"""
    status_code = 409


class HTTPPreconditionFailed(RemoteQueryError):
    """412 Precondition Failed"""
    status_code = 412


_http_error_lookup = {
    exc.status_code: exc for exc in [HTTPBadRequest, HTTPUnauthorized, HTTPForbidden, HTTPNotFound, HTTPConflict, HTTPPreconditionFailed]
}


def http_error_lookup(status_code, error=None, reason=None):
    if status_code in _http_error_lookup:
        return _http_error_lookup[status_code](error=error, reason=reason)
    else:
        return RemoteQueryError(status_code=status_code, error=error, reason=reason)
