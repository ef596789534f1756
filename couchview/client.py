# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

"""Python client API for CouchDB views.

>>> from couchview import DesignDocument, ViewDefinition, ViewQueryOptions
>>> server = Server()
>>> db = server.create('python-tests')
>>> view = ViewDefinition('by_type')
>>> view.set_map_function('function(doc) { emit(doc.type, null); }')
>>> ddoc = DesignDocument.create('people')
>>> ddoc.add_view(view)
>>> db.save(ddoc)                                        #doctest: +ELLIPSIS
('_design/people', ...)
>>> opts = ViewQueryOptions()
>>> opts.include_missing_keys()
>>> [row.key for row in db.query_view('people', 'by_type', ['Person', 'City'], opts)]
['Person', 'City']
>>> del server['python-tests']
"""
import io
import json
import logging
import mimetypes
import os

import furl

from couchview import exceptions, views
from couchview.config import Config
from couchview.design import temp_view
from couchview.documents import load_document, DESIGN_PREFIX, LOCAL_PREFIX
from couchview.options import ChangesFeedOptions, DbUpdatesFeedOptions, ViewQueryOptions
from couchview.session import Session
from couchview.validation import EMBEDDED_LANGUAGE

__all__ = ['Server', 'Database']
__docformat__ = 'restructuredtext en'

log = logging.getLogger(__name__)

BIN_MIME = "application/octet-stream"


def _jsons(data):
    """Convert data into JSON string."""
    return json.dumps(data, ensure_ascii=False)


def _doc_segments(doc_id):
    """Split a document ID into URL path segments.

    Design and local documents keep their prefix as a separate segment so
    the slash is not escaped.
    """
    if not doc_id:
        raise exceptions.InvalidArgumentError("Document ID cannot be empty")
    for prefix in (DESIGN_PREFIX, LOCAL_PREFIX):
        if doc_id.startswith(prefix):
            name = doc_id[len(prefix):]
            if not name:
                raise exceptions.InvalidArgumentError(
                    "Document ID %r has no name after its prefix" % doc_id)
            return [prefix.rstrip('/'), name]
    return [doc_id]


def _iter_feed(resp):
    """Yield the events of a continuous feed, one JSON object per line."""
    try:
        for ln in resp.iter_lines():
            if not ln: # skip heartbeats
                continue
            event = json.loads(ln.decode('utf-8'))
            yield event
            if 'last_seq' in event:
                break
    finally:
        resp.close()


def _read_feed(session, path, options, body=None):
    params = options.as_params()
    log.debug('Reading %s feed %s', options.feed_type or 'normal', path)
    if options.is_continuous:
        if body is not None:
            resp = session.post(path, json=body, params=params, stream=True)
        else:
            resp = session.get(path, params=params, stream=True)
        return _iter_feed(resp)
    if body is not None:
        return session.post(path, json=body, params=params).json()
    return session.get(path, params=params).json()


class Server(object):
    """Representation of a CouchDB server.

    >>> server = Server() # connects to the local_server
    >>> remote_server = Server('http://example.com:5984/')
    >>> configured = Server(config=Config(url='http://example.com:5984/', db_prefix='test_'))

    This class behaves like a dictionary of databases. For example, to get a
    list of database names on the server, you can simply iterate over the
    server object.

    New databases can be created using the `create` method:

    >>> db = server.create('python-tests')
    >>> db
    <Database 'python-tests'>

    Databases can be deleted using a ``del`` statement:

    >>> del server['python-tests']
    """

    def __init__(self, url=None, session=None, config=None):
        """Initialize the server object.

        :param url: the URI of the server (for example ``http://localhost:5984/``);
                    overrides the URL of ``config``
        :param session: an optional `Session` to send requests through
        :param config: a `Config`; read from the environment when omitted
        """
        if config is None:
            config = Config.from_env() if url is None else Config.from_env(url=url)
        elif url is not None:
            config = Config(url=url, db_prefix=config.db_prefix,
                            timeout=config.timeout, user_agent=config.user_agent)
        self._config = config
        if session:
            self._session = session
            self._session.base_url = config.url
        else:
            self._session = Session(base_url=config.url, config=config)
        self._version_info = None

    @property
    def url(self):
        return self._config.url

    @property
    def config(self):
        return self._config

    @property
    def session(self):
        return self._session

    def _db_path(self, name):
        if not name:
            raise exceptions.InvalidArgumentError("Database name cannot be empty")
        return furl.Path([self._config.db_prefix + name])

    def __contains__(self, name):
        """Return whether the server contains a database with the specified
        name.

        :param name: the database name, without the configured prefix
        :return: `True` if a database with the name exists, `False` otherwise
        """
        try:
            self._session.head(self._db_path(name))
            return True
        except exceptions.HTTPNotFound:
            return False

    def __iter__(self):
        """Iterate over the names of all databases."""
        return iter(self._session.get('_all_dbs').json())

    def __len__(self):
        """Return the number of databases."""
        return len(self._session.get('_all_dbs').json())

    def __bool__(self):
        """Return whether the server is available."""
        try:
            self._session.head('')
            return True
        except exceptions.RequestsException:
            return False

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.url)

    def __delitem__(self, name):
        """Remove the database with the specified name.

        :param name: the name of the database
        :raise MissingDatabase: if no database with that name exists
        """
        try:
            self._session.delete(self._db_path(name))
        except exceptions.HTTPNotFound as exc:
            raise exceptions.MissingDatabase("Database does not exist") from exc
        log.debug('Deleted database %r', name)

    def __getitem__(self, name):
        """Return a `Database` object representing the database with the
        specified name.

        :param name: the name of the database
        :return: a `Database` object representing the database
        :rtype: `Database`
        :raise MissingDatabase: if no database with that name exists
        """
        return Database(self, name, check=True)

    def info(self):
        """The welcome object of the server: version, vendor, features."""
        return self._session.get('').json()

    def version(self):
        """The version string of the CouchDB server.

        :rtype: `str`"""
        return self.info()['version']

    def version_info(self):
        """The version of the CouchDB server as a tuple of ints.

        Note that this results in a request being made only at the first call.
        Afterwards the result will be cached.

        :rtype: `tuple(int, int, int)`"""
        if self._version_info is None:
            version = self.version()
            self._version_info = tuple(int(part) for part in version.split('.') if part.isdigit())
        return self._version_info

    def config_section(self, section=None, key=None, node="_local"):
        """The configuration of the CouchDB server, or one section or key of it.

        :rtype: `dict` or `str`
        """
        if key and not section:
            raise exceptions.InvalidArgumentError("A config key needs a section")
        path = furl.Path(['_node', node, '_config'])
        if section:
            path.add([section])
        if key:
            path.add([key])
        return self._session.get(path).json()

    def set_config(self, section, key, value, node="_local"):
        """Set a configuration value; returns the previous value."""
        if not section or not key:
            raise exceptions.InvalidArgumentError("Both section and key are required")
        path = furl.Path(['_node', node, '_config', section, key])
        return self._session.put(path, json=value).json()

    def delete_config(self, section, key, node="_local"):
        """Delete a configuration value; returns the removed value."""
        if not section or not key:
            raise exceptions.InvalidArgumentError("Both section and key are required")
        path = furl.Path(['_node', node, '_config', section, key])
        return self._session.delete(path).json()

    def stats(self, name=None, node="_local"):
        """Server statistics.

        :param name: name of single statistic, e.g. httpd/requests
                     (None -- return all statistics)
        :param node: node for which to return statistics
        """
        path = furl.Path(['_node', node, '_stats'])
        if name:
            path.add(name)
        return self._session.get(path).json()

    def tasks(self):
        """A list of tasks currently active on the server."""
        return self._session.get("_active_tasks").json()

    def uuids(self, count=1):
        """Retrieve a batch of uuids

        :param count: a number of uuids to fetch
        :return: a list of uuids
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise exceptions.InvalidArgumentError("count must be a positive integer")
        data = self._session.get("_uuids", params={'count': count}).json()
        return data['uuids']

    def create(self, name):
        """Create a new database with the given name.

        :param name: the name of the database
        :return: a `Database` object representing the created database
        :rtype: `Database`
        :raise DatabaseExists: if a database with that name already exists
        """
        try:
            self._session.put(self._db_path(name))
        except exceptions.HTTPPreconditionFailed as exc:
            raise exceptions.DatabaseExists("Database already exists") from exc
        log.debug('Created database %r', name)
        return Database(self, name, check=False)

    def delete(self, name):
        """Delete the database with the specified name.

        :param name: the name of the database
        :raise MissingDatabase: if a database with that name does not exist
        """
        del self[name]

    def _absolute_db_url(self, name):
        # CouchDB requires full URLs for source and target even on the same server,
        # if we don't get a netloc we assume it's only a database name
        if furl.furl(name).netloc:
            return name
        return furl.furl(self.url).set(path=[self._config.db_prefix + name]).url

    def replicate(self, source, target, **options):
        """Replicate changes from the source database to the target database.

        :param source: URL or name of the source database
        :param target: URL or name of the target database
        :param options: optional replication args, e.g. continuous=True,
                        create_target=True, filter='ddoc/filter'
        """
        data = {'source': self._absolute_db_url(source),
                'target': self._absolute_db_url(target)}
        data.update(options)
        return self._session.post("_replicate", json=data).json()

    def cancel_replication(self, replication_id):
        """Stop a running replication by the ID the server assigned it."""
        if not replication_id:
            raise exceptions.InvalidArgumentError("Replication ID cannot be empty")
        data = {'replication_id': replication_id, 'cancel': True}
        return self._session.post("_replicate", json=data).json()

    def login(self, name, password):
        """Open a cookie session for a regular user.

        :param name: name of regular user, normally user id
        :param password: password of regular user
        :raise LoginFailed: if the server rejects the credentials
        """
        try:
            return self._session.post("_session", json={'name': name, 'password': password}).json()
        except (exceptions.HTTPUnauthorized, exceptions.HTTPForbidden) as exc:
            raise exceptions.LoginFailed("Login failed for %r" % name) from exc

    def logout(self):
        """Close the current cookie session."""
        return self._session.delete("_session").json()

    def get_session(self):
        """Return information about the current session."""
        return self._session.get("_session").json()

    def db_updates(self, options=None, **opts):
        """Retrieve the feed of database creations, updates and deletions.

        :param options: a `DbUpdatesFeedOptions`, or pass its values as
                        keywords, e.g. ``feed='continuous', timeout=10``
        :return: the response dict, or an iterator over event dicts for a
                 continuous feed
        """
        feed = DbUpdatesFeedOptions.coerce(options if options is not None else opts)
        return _read_feed(self._session, '_db_updates', feed)


class Database(object):
    """Representation of a database on a CouchDB server.

    >>> server = Server()
    >>> db = server.create('python-tests')

    New documents can be added to the database using the `save()` method:

    >>> doc_id, doc_rev = db.save({'type': 'Person', 'name': 'John Doe'})

    This class provides a dictionary-like interface to databases: documents are
    retrieved by their ID using item access

    >>> doc = db[doc_id]
    >>> doc                 #doctest: +ELLIPSIS
    <Document '...'@'...' {...}>
    >>> del server['python-tests']
    """

    def __init__(self, server, name, check=True):
        if not name:
            raise exceptions.InvalidArgumentError("Database name cannot be empty")
        self._name = name
        self._server = server
        if check:
            self.check()

    @classmethod
    def from_url(cls, url, **options):
        """
        Initialize a database object from a URL instead of a `Server` object.
        """
        parsed_url = furl.furl(url)
        if len(parsed_url.path.segments) != 1 or not parsed_url.path.segments[0]:
            raise exceptions.InvalidArgumentError("URL must contain exactly one path segment")
        db_name = parsed_url.path.segments[0]
        parsed_url.remove(path=True)
        server = Server(url=parsed_url.url or None)
        return cls(server=server, name=db_name, **options)

    @property
    def name(self):
        return self._name

    @property
    def server(self):
        return self._server

    @property
    def session(self):
        return self._server.session

    @property
    def path(self):
        """A fresh `furl.Path` to the database; safe to extend with ``add``."""
        return self._server._db_path(self._name)

    def _doc_path(self, doc_id, *extra):
        return self.path.add(_doc_segments(doc_id) + list(extra))

    def exists(self):
        try:
            self.session.head(self.path)
        except exceptions.HTTPNotFound:
            return False
        return True

    def check(self):
        if not self.exists():
            raise exceptions.MissingDatabase("Database does not exist")

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.name)

    def __contains__(self, id):
        """Return whether the database contains a document with the specified
        ID.
        """
        try:
            self.session.head(self._doc_path(id))
        except exceptions.HTTPNotFound:
            return False
        return True

    def __iter__(self):
        """Return the IDs of all documents in the database."""
        try:
            return iter([row.id for row in self.query_all_docs()])
        except exceptions.HTTPNotFound as exc:
            raise exceptions.MissingDatabase("Database does not exist") from exc

    def __len__(self):
        """Return the number of documents in the database."""
        return self.info()['doc_count']

    def __bool__(self):
        """Return whether the database is available."""
        return self.exists()

    def __delitem__(self, id):
        """Remove the document with the specified ID from the database.

        :param id: the document ID
        """
        self.delete({'_id': id, '_rev': self.etag(id)})

    def __getitem__(self, id):
        """Return the document with the specified ID.

        :param id: the document ID
        :return: a `Document`, `DesignDocument` or `LocalDocument`
        :raise MissingDocument: if no document with that ID exists
        """
        try:
            return load_document(self.session.get(self._doc_path(id)).json())
        except exceptions.HTTPNotFound as exc:
            raise exceptions.MissingDocument("Document does not exist") from exc

    def __setitem__(self, id, content):
        """Create or update a document with the specified ID.

        ``content`` gets the new ``_id`` and ``_rev`` written back into it.
        """
        try:
            data = self.session.put(self._doc_path(id), json=content).json()
        except exceptions.HTTPConflict as exc:
            raise exceptions.UpdateConflict("Document update conflict") from exc
        content.update({'_id': data['id'], '_rev': data['rev']})

    def info(self):
        """Return information about the database as a dictionary.

        :raise MissingDatabase: if the database does not exist
        """
        try:
            return self.session.get(self.path).json()
        except exceptions.HTTPNotFound as exc:
            raise exceptions.MissingDatabase("Database does not exist") from exc

    def design_info(self, design_doc):
        """Return information about a design document's view index."""
        if not design_doc:
            raise exceptions.InvalidArgumentError("Design document name cannot be empty")
        return self.session.get(self.path.add(['_design', design_doc, '_info'])).json()

    @property
    def security(self):
        return self.session.get(self.path.add("_security")).json()

    @security.setter
    def security(self, doc):
        self.session.put(self.path.add("_security"), json=doc)

    @property
    def revs_limit(self):
        """How many revisions of each document the database keeps track of."""
        return int(self.session.get(self.path.add("_revs_limit")).json())

    @revs_limit.setter
    def revs_limit(self, limit):
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise exceptions.InvalidArgumentError(
                "revs_limit must be a positive integer, got %r" % (limit,))
        self.session.put(self.path.add("_revs_limit"), json=limit)

    def ensure_full_commit(self):
        """Commit recent changes to disk.

        :return: the start time of the database instance
        """
        data = self.session.post(self.path.add("_ensure_full_commit"), json={}).json()
        return data.get('instance_start_time')

    def etag(self, id):
        """Return the current revision of a document without fetching it.

        :raise MissingDocument: if no document with that ID exists
        """
        try:
            resp = self.session.head(self._doc_path(id))
        except exceptions.HTTPNotFound as exc:
            raise exceptions.MissingDocument("Document does not exist") from exc
        return resp.headers['ETag'].strip('"')

    def missing_revs(self, revs):
        """Return the revisions the database does not have.

        :param revs: a mapping of document ID to a list of revisions
        :return: a mapping of document ID to its missing revisions
        """
        data = self.session.post(self.path.add("_missing_revs"), json=revs).json()
        return data['missing_revs']

    def revs_diff(self, revs):
        """Like `missing_revs`, and also report the known ancestors of each
        missing revision."""
        return self.session.post(self.path.add("_revs_diff"), json=revs).json()

    def changes(self, options=None, selector=None, **opts):
        """Retrieve a changes feed from the database.

        :param options: a `ChangesFeedOptions`, or pass its values as
                        keywords, e.g. ``since='now', include_docs=True``
        :param selector: a Mango selector; only changes to matching
                         documents are returned
        :return: the response dict, or an iterator over change dicts for a
                 continuous feed
        """
        feed = ChangesFeedOptions.coerce(options if options is not None else opts)
        body = None
        if selector is not None:
            feed.set_filter('_selector')
            body = {'selector': selector}
        return _read_feed(self.session, self.path.add("_changes"), feed, body)

    def save(self, doc, batch=False):
        """Create a new document or update an existing document.

        Documents with an ``_id`` are written with ``PUT`` to that ID;
        otherwise the server allocates one. Trying to update an existing
        document with an incorrect ``_rev`` raises `UpdateConflict`.

        :param doc: the document to store; its ``_id`` and ``_rev`` are
                    updated in place
        :param batch: whether to use the server's batch mode
        :return: (id, rev) tuple of the saved document; rev is `None` in
                 batch mode
        :rtype: `tuple`
        """
        params = {'batch': 'ok'} if batch else {}
        try:
            if doc.get('_id'):
                data = self.session.put(self._doc_path(doc['_id']), json=doc, params=params).json()
            else:
                data = self.session.post(self.path, json=doc, params=params).json()
        except exceptions.HTTPConflict as exc:
            raise exceptions.UpdateConflict("Document update conflict") from exc

        doc['_id'] = data['id']
        rev = data.get('rev')
        # Not present for batch='ok'
        if rev:
            doc['_rev'] = rev
        return doc['_id'], rev

    def cleanup(self):
        """Remove index files no design document refers to any more.

        :return: whether the cleanup was started
        :rtype: `bool`
        """
        data = self.session.post(self.path.add("_view_cleanup"), json={}).json()
        return data['ok']

    def compact(self):
        """Prune old document revisions.

        :return: whether the compaction was started
        :rtype: `bool`
        """
        # Needs empty json arguments, so that 'application/json' content-type is set
        data = self.session.post(self.path.add("_compact"), json={}).json()
        return data['ok']

    def compact_views(self, design_doc):
        """Compact the view indexes of one design document."""
        if not design_doc:
            raise exceptions.InvalidArgumentError("Design document name cannot be empty")
        data = self.session.post(self.path.add(["_compact", design_doc]), json={}).json()
        return data['ok']

    def copy(self, src, dest):
        """Copy the given document to create a new document.

        :param src: the ID of the document to copy, or a dictionary
                    representing the source document.
        :param dest: either the destination document ID as string, or a
                     dictionary with ``_id`` and ``_rev`` of the document
                     that should be overwritten.
        :return: the new revision of the destination document
        :rtype: `str`
        """
        src_id = src if isinstance(src, str) else src['_id']
        if isinstance(dest, str):
            dest_id, dest_rev = dest, None
        else:
            dest_id, dest_rev = dest['_id'], dest.get('_rev')

        destination = dest_id
        if dest_rev:
            destination = "{}?rev={}".format(dest_id, dest_rev)

        try:
            data = self.session.request("COPY", self._doc_path(src_id),
                                        headers={'Destination': destination}).json()
        except exceptions.HTTPConflict as exc:
            raise exceptions.UpdateConflict("Document update conflict") from exc
        return data['rev']

    def delete(self, doc):
        """Delete the given document from the database.

        :param doc: a dictionary holding at least ``_id`` and ``_rev``
        :raise UpdateConflict: if the document was updated in the database
        """
        if not doc.get('_id'):
            raise exceptions.InvalidArgumentError('document ID cannot be empty')
        try:
            self.session.delete(self._doc_path(doc['_id']), params={'rev': doc['_rev']})
        except exceptions.HTTPConflict as exc:
            raise exceptions.UpdateConflict("Document update conflict") from exc

    def get(self, id, default=None, rev=None, **options):
        """Return the document with the specified ID.

        :param id: the document ID
        :param default: the value to return when the document is not found
        :param rev: a specific revision to fetch
        :param options: further query options, e.g. ``revs=True``,
                        ``conflicts=True``; values are JSON encoded
        :return: the document variant for the ID, or ``default``
        """
        params = {name: _jsons(value) for name, value in options.items() if value is not None}
        if rev is not None:
            params['rev'] = rev
        try:
            return load_document(self.session.get(self._doc_path(id), params=params).json())
        except exceptions.HTTPNotFound:
            return default

    def update(self, documents, new_edits=True):
        """Perform a bulk update or insertion of the given documents using a
        single HTTP request.

        The return value of this method is a list containing a tuple for every
        element in the `documents` sequence. Each tuple is of the form
        ``(success, docid, rev_or_exc)``, where ``success`` is a boolean
        indicating whether the update succeeded, ``docid`` is the ID of the
        document, and ``rev_or_exc`` is either the new document revision, or
        an exception instance (e.g. `UpdateConflict`) if the update failed.

        :param documents: a sequence of dictionaries
        :rtype: ``list``
        """
        docs = []
        for doc in documents:
            if not isinstance(doc, dict):
                raise exceptions.InvalidArgumentError('expected dict, got %s' % type(doc).__name__)
            docs.append(doc)

        payload = {'docs': docs, 'new_edits': new_edits}
        data = self.session.post(self.path.add("_bulk_docs"), json=payload).json()

        results = []
        for doc, result in zip(docs, data):
            if 'error' in result:
                if result['error'] == 'conflict':
                    exc_type = exceptions.UpdateConflict
                else:
                    exc_type = exceptions.CouchDBException
                results.append((False, result['id'], exc_type(result.get('reason'))))
            else:
                doc.update({'_id': result['id'], '_rev': result['rev']})
                results.append((True, result['id'], result['rev']))
        return results

    def purge(self, docs):
        """Perform purging (complete removing) of the given documents.

        Purged documents do not leave any meta-data in the storage and are
        not replicated.
        """
        content = {}
        for doc in docs:
            if not isinstance(doc, dict):
                raise exceptions.InvalidArgumentError('expected dict, got %s' % type(doc).__name__)
            content.setdefault(doc['_id'], []).append(doc['_rev'])
        return self.session.post(self.path.add("_purge"), json=content).json()

    def delete_attachment(self, doc, filename):
        """Delete the specified attachment; ``doc['_rev']`` is updated.

        :param doc: the dictionary representing the document that the
                    attachment belongs to; needs ``_id`` and ``_rev``
        :param filename: the name of the attachment file
        """
        path = self._doc_path(doc['_id'], filename)
        data = self.session.delete(path, params={'rev': doc['_rev']}).json()
        doc['_rev'] = data['rev']
        return doc['_rev']

    def get_attachment(self, id_or_doc, filename, default=None, rev=None):
        """Return an attachment from the specified doc id and filename.

        :return: a file-like object, or ``default`` if the document or
                 attachment is not found
        """
        if isinstance(id_or_doc, dict):
            id = id_or_doc['_id']
            if rev is None:
                rev = id_or_doc.get('_rev')
        else:
            id = id_or_doc

        params = {'rev': rev} if rev is not None else {}
        try:
            return io.BytesIO(self.session.get(self._doc_path(id, filename), params=params).content)
        except exceptions.HTTPNotFound:
            return default

    def put_attachment(self, doc, content, filename=None, content_type=None):
        """Create or replace an attachment; ``doc['_rev']`` is updated.

        :param doc: the dictionary representing the document that the
                    attachment should be added to; needs ``_id`` and ``_rev``
        :param content: the content to upload, either a file-like object or
                        bytes
        :param filename: the name of the attachment file; taken from the
                         file-like object when omitted
        :param content_type: guessed from the file name when omitted
        :return: the new document revision
        """
        if filename is None:
            try:
                filename = os.path.basename(content.name)
            except AttributeError as exc:
                raise exceptions.InvalidArgumentError('Could not determine filename from file object') from exc
        if not content_type:
            content_type, _ = mimetypes.guess_type(filename, strict=False)
            if not content_type:
                content_type = BIN_MIME
        headers = {"Content-Type": content_type, "If-Match": doc["_rev"]}
        resp = self.session.put(self._doc_path(doc['_id'], filename), data=content, headers=headers)
        doc['_rev'] = resp.json()['rev']
        return doc["_rev"]

    def view(self, name, keys=None, **options):
        """Execute a predefined view.

        :param name: the name of the view; for custom views, use the format
                     ``design_docid/viewname``, that is, the document ID of the
                     design document and the name of the view, separated by a
                     slash. ``_all_docs`` queries the built-in view.
        :param keys: optional list of keys to fetch
        :param options: query options, e.g. ``group=True``,
                        ``include_missing_keys=True``
        :rtype: `QueryResult`
        """
        if name == '_all_docs':
            return self.query_all_docs(keys, options)
        if name.startswith(DESIGN_PREFIX):
            name = name[len(DESIGN_PREFIX):]
        design_doc, _, view_name = name.partition('/')
        return self.query_view(design_doc, view_name, keys, options)

    def _query(self, path, body, keys, options):
        """Send one view-like query and return the result.

        The options always go in the query string. Non-empty keys turn the
        read into a ``POST`` since key lists can exceed URL length limits.
        """
        opts = ViewQueryOptions.coerce(options)
        params = opts.as_params()
        # Read once; the same list goes out in the body and into reconcile.
        keys = list(keys) if keys is not None else None
        if keys:
            body = dict(body or {}, keys=keys)
        if body is not None:
            data = self.session.post(path, json=body, params=params).json()
        else:
            data = self.session.get(path, params=params).json()

        if opts.includes_missing_keys:
            data['rows'] = views.reconcile(keys, data.get('rows'))
        return views.QueryResult.from_json(data)

    def query_view(self, design_doc, view_name, keys=None, options=None):
        """Query a view index to obtain data and/or documents.

        :param design_doc: the design document name, without ``_design/``
        :param view_name: the name of the view
        :param keys: optional ordered list of keys to fetch; rows come back
                     in the order of the keys
        :param options: a `ViewQueryOptions` or a mapping such as
                        ``{'group': True, 'include_missing_keys': True}``
        :rtype: `QueryResult`

        A reduce view only accepts several keys together with ``group=true``;
        otherwise the server's error is raised as `RemoteQueryError`.
        """
        if not design_doc:
            raise exceptions.InvalidArgumentError("Design document name cannot be empty")
        if not view_name:
            raise exceptions.InvalidArgumentError("View name cannot be empty")
        path = self.path.add(['_design', design_doc, '_view', view_name])
        return self._query(path, None, keys, options)

    def query_all_docs(self, keys=None, options=None):
        """Query the built-in view of all documents.

        Combining ``keys`` with ``include_docs`` fetches several documents in
        one request.

        :rtype: `QueryResult`
        """
        return self._query(self.path.add('_all_docs'), None, keys, options)

    def query_temp_view(self, map_function, reduce_function=None, keys=None, options=None,
                        language=EMBEDDED_LANGUAGE):
        """Run map and reduce functions over all documents without storing
        them in a design document.

        The server only allows this for admins. PHP sources are validated
        before the request is sent.

        :param reduce_function: custom source or a built-in such as ``'_count'``
        :rtype: `QueryResult`
        """
        view = temp_view(map_function, reduce_function, language)
        return self._query(self.path.add('_temp_view'), view.serialize(), keys, options)

