"""Client configuration.

A `Config` is built once by the caller and handed to `Server`; every
`Database` and `Session` created from that server reads from the same
instance.
"""
import os

from couchview import exceptions


DEFAULT_URL = 'http://localhost:5984/'
DEFAULT_USER_AGENT = 'couchview'


class Config(object):
    """Settings shared by a `Server` and the objects created from it.

    :param url: the server URL, e.g. ``http://localhost:5984/``
    :param db_prefix: a string prepended to every database name
    :param timeout: request timeout in seconds, or `None` to wait forever
    :param user_agent: value of the ``User-Agent`` header
    """

    def __init__(self, url=DEFAULT_URL, db_prefix='', timeout=None,
                 user_agent=DEFAULT_USER_AGENT):
        if not url:
            raise exceptions.InvalidArgumentError("Server URL cannot be empty")
        if timeout is not None and timeout <= 0:
            raise exceptions.InvalidArgumentError("Timeout must be a positive number")
        # BaseUrlSession joins relative paths, so the base needs its slash.
        if not url.endswith('/'):
            url += '/'
        self.url = url
        self.db_prefix = db_prefix or ''
        self.timeout = timeout
        self.user_agent = user_agent

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """Build a config from ``COUCHDB_URL``, ``COUCHDB_DB_PREFIX`` and
        ``COUCHDB_TIMEOUT``; keyword arguments win over the environment.
        """
        environ = os.environ if environ is None else environ
        settings = {
            'url': environ.get('COUCHDB_URL', DEFAULT_URL),
            'db_prefix': environ.get('COUCHDB_DB_PREFIX', ''),
        }
        timeout = environ.get('COUCHDB_TIMEOUT')
        if timeout:
            try:
                settings['timeout'] = float(timeout)
            except ValueError as exc:
                raise exceptions.InvalidArgumentError(
                    "COUCHDB_TIMEOUT is not a number: %r" % timeout) from exc
        settings.update(overrides)
        return cls(**settings)

    def __repr__(self):
        return '<%s %r prefix=%r>' % (type(self).__name__, self.url, self.db_prefix)
