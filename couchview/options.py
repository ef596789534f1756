# -*- coding: utf-8 -*-

"""Query string options for view queries.

>>> opts = ViewQueryOptions()
>>> opts.group_results()
>>> opts.set_limit(10)
>>> opts.include_missing_keys()
>>> sorted(opts.as_params().items())
[('group', 'true'), ('limit', '10')]
>>> opts.includes_missing_keys
True
"""
import json

from couchview import exceptions

__all__ = ['ViewQueryOptions', 'FeedOptions', 'ChangesFeedOptions', 'DbUpdatesFeedOptions']

STALE_VALUES = ('ok', 'update_after')

# Consumed by the client, never sent to the server.
INCLUDE_MISSING_KEYS = 'include_missing_keys'

_JSON_OPTIONS = ('key', 'startkey', 'endkey', 'start_key', 'end_key')


def _jsons(data):
    """Convert data into JSON string."""
    return json.dumps(data, ensure_ascii=False)


def _check_count(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise exceptions.InvalidArgumentError(
            "%s must be a non-negative integer, got %r" % (name, value))


class ViewQueryOptions(object):
    """Options for `Database.query_view` and friends.

    Every value is kept already encoded for the query string, the way the
    server expects it.
    """

    def __init__(self):
        self._options = {}
        self._include_missing_keys = False

    @classmethod
    def from_mapping(cls, mapping):
        """Build options from plain keyword-style values, e.g.
        ``{'group': True, 'limit': 5, 'include_missing_keys': True}``.

        Keys and strings are forwarded verbatim; anything else is JSON
        encoded.
        """
        opts = cls()
        for name, value in mapping.items():
            if value is None:
                continue
            if name == INCLUDE_MISSING_KEYS:
                opts._include_missing_keys = bool(value)
            elif name in ('limit', 'skip', 'group_level'):
                _check_count(name, value)
                opts._options[name] = _jsons(value)
            elif name == 'stale':
                opts.set_stale(value)
            elif name in _JSON_OPTIONS or not isinstance(value, str):
                opts._options[name] = _jsons(value)
            else:
                opts._options[name] = value
        return opts

    @classmethod
    def coerce(cls, options):
        """Return ``options`` as a `ViewQueryOptions` instance."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if hasattr(options, 'items'):
            return cls.from_mapping(options)
        raise exceptions.InvalidArgumentError(
            "expected ViewQueryOptions or a mapping, got %s" % type(options).__name__)

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self._options)

    def reset(self):
        self._options = {}
        self._include_missing_keys = False

    def as_params(self):
        """Return the options to put in the query string."""
        return dict(self._options)

    @property
    def includes_missing_keys(self):
        return self._include_missing_keys

    def include_missing_keys(self):
        """Return a row, with null id and value, for every requested key the
        view has no row for. Only meaningful together with a key list."""
        self._include_missing_keys = True

    def set_key(self, key):
        """Return only rows matching ``key``."""
        self._options['key'] = _jsons(key)

    def set_start_key(self, key):
        self._options['startkey'] = _jsons(key)

    def set_end_key(self, key):
        self._options['endkey'] = _jsons(key)

    def set_start_doc_id(self, doc_id):
        self._options['startkey_docid'] = doc_id

    def set_end_doc_id(self, doc_id):
        self._options['endkey_docid'] = doc_id

    def exclude_end_key(self):
        self._options['inclusive_end'] = 'false'

    def set_limit(self, value):
        _check_count('limit', value)
        self._options['limit'] = _jsons(value)

    def skip_docs(self, number):
        _check_count('skip', number)
        self._options['skip'] = _jsons(number)

    def reverse_order_of_results(self):
        self._options['descending'] = 'true'

    def group_results(self):
        """Group by the full key. Required when querying a reduce view with
        several keys."""
        self._options['group'] = 'true'

    def set_group_level(self, level):
        _check_count('group_level', level)
        self._options['group_level'] = _jsons(level)

    def do_not_reduce(self):
        self._options['reduce'] = 'false'

    def include_docs(self):
        """Embed each row's document. Implies ``reduce=false``."""
        self._options['include_docs'] = 'true'
        self._options['reduce'] = 'false'

    def include_conflicts(self):
        self._options['conflicts'] = 'true'

    def include_update_seq(self):
        self._options['update_seq'] = 'true'

    def set_stale(self, value='ok'):
        """Use the index as it is, optionally updating it afterwards
        (``'update_after'``)."""
        if value not in STALE_VALUES:
            raise exceptions.InvalidArgumentError(
                "stale must be one of %s, got %r" % (', '.join(STALE_VALUES), value))
        self._options['stale'] = value


def _check_positive(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise exceptions.InvalidArgumentError(
            "%s must be a positive integer, got %r" % (name, value))


class FeedOptions(object):
    """Query string options for the server's notification feeds.

    A ``continuous`` feed keeps the connection open and sends one JSON line
    per event; the client then yields events as they arrive.
    """

    feed_types = ('longpoll', 'continuous', 'eventsource')

    def __init__(self):
        self._options = {}

    @classmethod
    def from_mapping(cls, mapping):
        """Build options from keyword-style values such as
        ``{'feed': 'continuous', 'timeout': 30}``."""
        opts = cls()
        # The feed type decides whether a timeout is accepted.
        if mapping.get('feed') is not None:
            opts.set_feed_type(mapping['feed'])
        for name, value in mapping.items():
            if value is None or name == 'feed':
                continue
            if name == 'timeout':
                opts.set_timeout(value)
            elif isinstance(value, str):
                opts._options[name] = value
            else:
                opts._options[name] = _jsons(value)
        return opts

    @classmethod
    def coerce(cls, options):
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if hasattr(options, 'items'):
            return cls.from_mapping(options)
        raise exceptions.InvalidArgumentError(
            "expected %s or a mapping, got %s" % (cls.__name__, type(options).__name__))

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self._options)

    def reset(self):
        self._options = {}

    def as_params(self):
        return dict(self._options)

    @property
    def feed_type(self):
        return self._options.get('feed')

    @property
    def is_continuous(self):
        return self.feed_type == 'continuous'

    def set_feed_type(self, feed):
        if feed not in self.feed_types:
            raise exceptions.InvalidArgumentError(
                "feed must be one of %s, got %r" % (', '.join(self.feed_types), feed))
        self._options['feed'] = feed

    def set_timeout(self, timeout):
        """How long the server waits for events before closing the feed.
        Only used by a continuous feed; set the feed type first."""
        _check_positive('timeout', timeout)
        if not self.is_continuous:
            raise exceptions.InvalidArgumentError("timeout only applies to a continuous feed")
        self._options['timeout'] = _jsons(timeout)

    def set_heartbeat(self, interval):
        """Send an empty line every ``interval`` milliseconds."""
        _check_positive('heartbeat', interval)
        self._options['heartbeat'] = _jsons(interval)

    def do_not_keep_alive(self):
        self._options['heartbeat'] = 'false'


class DbUpdatesFeedOptions(FeedOptions):
    """Options for `Server.db_updates`. The timeout is in seconds."""


class ChangesFeedOptions(FeedOptions):
    """Options for `Database.changes`. The timeout is in milliseconds.

    >>> opts = ChangesFeedOptions()
    >>> opts.set_since('now')
    >>> opts.include_docs()
    >>> sorted(opts.as_params().items())
    [('include_docs', 'true'), ('since', 'now')]
    """

    feed_types = ('normal',) + FeedOptions.feed_types

    def set_since(self, seq):
        """Start after update sequence ``seq``; ``'now'`` skips history."""
        self._options['since'] = seq if isinstance(seq, str) else _jsons(seq)

    def set_limit(self, value):
        _check_count('limit', value)
        self._options['limit'] = _jsons(value)

    def reverse_order_of_results(self):
        self._options['descending'] = 'true'

    def include_docs(self):
        self._options['include_docs'] = 'true'

    def include_conflicts(self):
        self._options['conflicts'] = 'true'

    def include_all_revs(self):
        """Report every leaf revision instead of the winning one only."""
        self._options['style'] = 'all_docs'

    def set_filter(self, name):
        """Filter changes with ``design_doc/filter`` or a built-in such as
        ``_design`` or ``_doc_ids``."""
        if not name:
            raise exceptions.InvalidArgumentError("Filter name cannot be empty")
        self._options['filter'] = name
