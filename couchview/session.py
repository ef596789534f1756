import logging

import requests.exceptions
from requests_toolbelt import sessions

from couchview import exceptions


log = logging.getLogger(__name__)


def _error_from_response(response):
    """Build the exception for a non-success response, keeping CouchDB's
    ``error`` and ``reason`` fields exactly as sent."""
    error, reason = None, None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get('error')
        reason = body.get('reason')
    if error is None and reason is None:
        reason = response.reason
    return exceptions.http_error_lookup(response.status_code, error, reason)


class Session(object):
    """Wrapper around BaseUrlSession that automatically wraps certain exceptions when making requests.

    :param base_url: the server URL every request path is joined to
    :param config: an optional `Config` supplying the timeout and user agent
    """

    def __init__(self, base_url=None, config=None):
        self._base_session = sessions.BaseUrlSession(base_url=base_url)
        self._timeout = None
        if config is not None:
            self._timeout = config.timeout
            self._base_session.headers['User-Agent'] = config.user_agent
        self._base_session.headers['Accept'] = 'application/json'

    @property
    def base_url(self):
        return self._base_session.base_url

    @base_url.setter
    def base_url(self, url):
        self._base_session.base_url = url

    def request(self, method, url, **kwargs):
        if self._timeout is not None:
            kwargs.setdefault('timeout', self._timeout)
        log.debug('%s %s params=%r', method, url, kwargs.get('params'))
        try:
            resp = self._base_session.request(method, str(url), **kwargs)
        except requests.exceptions.Timeout as exc:
            raise exceptions.Timeout("Request to {} timed out".format(url)) from exc
        except requests.exceptions.RequestException as exc:
            raise exceptions.RequestsException(str(exc)) from exc
        if not resp.ok:
            error = _error_from_response(resp)
            log.debug('%s %s failed: %s', method, url, error)
            raise error
        return resp

    def head(self, url, **kwargs):
        return self.request("HEAD", url, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def put(self, url, data=None, json=None, **kwargs):
        return self.request("PUT", url, data=data, json=json, **kwargs)

    def post(self, url, data=None, json=None, **kwargs):
        return self.request("POST", url, data=data, json=json, **kwargs)

    def delete(self, url, **kwargs):
        return self.request("DELETE", url, **kwargs)
