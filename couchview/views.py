import collections
import hashlib
import json
import logging

__all__ = ['Row', 'QueryResult', 'reconcile', 'key_hash']

log = logging.getLogger(__name__)


class Row(collections.namedtuple("Row", ["id", "key", "value", "doc"])):
    """One row of a view result. ``doc`` is only set when the query asked
    for ``include_docs``."""
    __slots__ = ()

    @classmethod
    def from_json(cls, data):
        return cls(data.get("id"), data.get("key"), data.get("value"), data.get("doc"))


class QueryResult(object):
    """Result of view query; contains rows, offset, total_rows.
    Instances of this class are not supposed to be created by client software.

    ``total_rows``, ``offset`` and ``update_seq`` are whatever the server
    reported, or `None` if the response did not carry them.
    """

    def __init__(self, rows, offset=None, total_rows=None, update_seq=None):
        self._rows = tuple(rows)
        self._offset = offset
        self._total_rows = total_rows
        self._update_seq = update_seq

    @classmethod
    def from_json(cls, data):
        return cls(
            [Row.from_json(r) for r in data.get("rows") or []],
            data.get("offset"),
            data.get("total_rows"),
            data.get("update_seq"),
        )

    @property
    def rows(self):
        return self._rows

    @property
    def offset(self):
        return self._offset

    @property
    def total_rows(self):
        return self._total_rows

    @property
    def update_seq(self):
        return self._update_seq

    def __len__(self):
        return len(self._rows)

    def __getitem__(self, i):
        return self._rows[i]

    def __iter__(self):
        return iter(self._rows)

    def __repr__(self):
        return '<%s rows=%d total_rows=%r offset=%r>' % (
            type(self).__name__, len(self._rows), self._total_rows, self._offset)

    def json(self):
        "Return data in a JSON-like representation."
        result = dict()
        result["total_rows"] = self.total_rows
        result["offset"] = self.offset
        if self.update_seq is not None:
            result["update_seq"] = self.update_seq
        result["rows"] = [dict(r._asdict()) for r in self._rows]
        return result


def _member_name(name):
    # Object member names are strings once they went over the wire.
    if isinstance(name, str):
        return name
    if isinstance(name, bool) or name is None:
        return json.dumps(name)
    if isinstance(name, float):
        return repr(name)
    return str(name)


def _normalize(value):
    # CouchDB collates 1 and 1.0 as the same key.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {_member_name(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def key_hash(key):
    """Hash a view key by value.

    The key is serialized as compact JSON with sorted object members and
    integral floats written as integers, so structurally equal keys hash the
    same however they were built.
    """
    canonical = json.dumps(_normalize(key), sort_keys=True, separators=(',', ':'),
                           ensure_ascii=False)
    return hashlib.md5(canonical.encode('utf-8')).hexdigest()


def reconcile(keys, rows):
    """Return one row per requested key, in the order of ``keys``.

    The server only returns rows for keys it found. Each key is matched by
    value against the returned rows; a key without a match gets a
    ``{'id': None, 'key': key, 'value': None}`` row. A key requested twice
    yields two rows.

    With no keys, or with ``rows`` unset, ``rows`` is returned untouched.

    >>> reconcile(['a', 'b'], [{'id': '1', 'key': 'a', 'value': 10}])
    [{'id': '1', 'key': 'a', 'value': 10}, {'id': None, 'key': 'b', 'value': None}]
    """
    if not keys or rows is None:
        return rows

    matches = {}
    for row in rows:
        matches[key_hash(row.get('key'))] = row

    all_rows = []
    for key in keys:
        row = matches.get(key_hash(key))
        if row is None:
            row = {'id': None, 'key': key, 'value': None}
        all_rows.append(row)

    log.debug('Reconciled %d requested keys against %d returned rows',
              len(keys), len(rows))
    return all_rows
