# -*- coding: utf-8 -*-

import unittest
from unittest import mock

from couchview import client, exceptions, documents
from couchview.config import Config
from couchview.design import ViewDefinition
from couchview.options import ChangesFeedOptions, DbUpdatesFeedOptions, ViewQueryOptions
from couchview.tests.test_validation import MAP, REDUCE
from couchview.views import Row


def json_response(body, headers=None):
    resp = mock.Mock()
    resp.json.return_value = body
    resp.headers = headers or {}
    return resp


class ClientTestCase(unittest.TestCase):

    def setUp(self):
        self.session = mock.Mock()
        self.server = client.Server(session=self.session, config=Config(url='http://localhost:5984/'))
        self.db = client.Database(self.server, 'pyqueries', check=False)

    def call_path(self, method):
        return str(method.call_args[0][0])


class QueryViewTestCase(ClientTestCase):

    def test_get_without_keys(self):
        self.session.get.return_value = json_response({
            'total_rows': 2, 'offset': 0,
            'rows': [{'id': '1', 'key': 'a', 'value': 10}],
        })
        opts = ViewQueryOptions()
        opts.set_limit(10)
        result = self.db.query_view('articles', 'by_id', options=opts)

        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_design/articles/_view/by_id')
        self.assertEqual(self.session.get.call_args[1]['params'], {'limit': '10'})
        self.session.post.assert_not_called()
        self.assertEqual(list(result), [Row('1', 'a', 10, None)])
        self.assertEqual(result.total_rows, 2)
        self.assertEqual(result.offset, 0)

    def test_post_with_keys(self):
        self.session.post.return_value = json_response({'rows': []})
        opts = ViewQueryOptions()
        opts.group_results()
        self.db.query_view('articles', 'by_id', ['a', ['b', 1]], opts)

        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_design/articles/_view/by_id')
        kwargs = self.session.post.call_args[1]
        self.assertEqual(kwargs['json'], {'keys': ['a', ['b', 1]]})
        self.assertEqual(kwargs['params'], {'group': 'true'})
        self.session.get.assert_not_called()

    def test_empty_keys_use_get(self):
        self.session.get.return_value = json_response({'rows': []})
        self.db.query_view('articles', 'by_id', [])
        self.session.get.assert_called_once()
        self.session.post.assert_not_called()

    def test_missing_keys_reconciled(self):
        self.session.post.return_value = json_response({
            'total_rows': 5, 'offset': 0,
            'rows': [
                {'id': '1', 'key': 'a', 'value': 10},
                {'id': '2', 'key': 'c', 'value': 30},
            ],
        })
        opts = ViewQueryOptions()
        opts.include_missing_keys()
        result = self.db.query_view('articles', 'by_id', ['a', 'b', 'c'], opts)

        self.assertNotIn('include_missing_keys', self.session.post.call_args[1]['params'])
        self.assertEqual(list(result), [
            Row('1', 'a', 10, None),
            Row(None, 'b', None, None),
            Row('2', 'c', 30, None),
        ])
        self.assertEqual(result.total_rows, 5)

    def test_missing_keys_not_reconciled_unless_asked(self):
        self.session.post.return_value = json_response({
            'rows': [{'id': '2', 'key': 'c', 'value': 30}],
        })
        result = self.db.query_view('articles', 'by_id', ['a', 'b', 'c'])
        self.assertEqual(len(result), 1)

    def test_generator_keys(self):
        self.session.post.return_value = json_response({
            'rows': [{'id': '2', 'key': 'c', 'value': 30}],
        })
        keys = (key for key in ['a', 'c'])
        result = self.db.query_view('articles', 'by_id', keys, {'include_missing_keys': True})
        self.assertEqual(self.session.post.call_args[1]['json'], {'keys': ['a', 'c']})
        self.assertEqual(list(result), [
            Row(None, 'a', None, None),
            Row('2', 'c', 30, None),
        ])

    def test_options_mapping(self):
        self.session.post.return_value = json_response({'rows': []})
        result = self.db.query_view('articles', 'by_id', ['x'],
                                    {'include_docs': True, 'include_missing_keys': True})
        self.assertEqual(self.session.post.call_args[1]['params'], {'include_docs': 'true'})
        self.assertEqual(list(result), [Row(None, 'x', None, None)])

    def test_include_docs(self):
        self.session.post.return_value = json_response({
            'rows': [{'id': '1', 'key': '1', 'value': {'rev': '1-a'}, 'doc': {'_id': '1'}}],
        })
        opts = ViewQueryOptions()
        opts.include_docs()
        result = self.db.query_all_docs(['1'], opts)
        self.assertEqual(result[0].doc, {'_id': '1'})

    def test_invalid_arguments(self):
        self.assertRaises(exceptions.InvalidArgumentError, self.db.query_view, '', 'by_id')
        self.assertRaises(exceptions.InvalidArgumentError, self.db.query_view, 'articles', '')
        self.assertRaises(exceptions.InvalidArgumentError, self.db.query_view,
                          'articles', 'by_id', None, 'group=true')
        self.session.get.assert_not_called()
        self.session.post.assert_not_called()

    def test_remote_error_propagates(self):
        error = exceptions.HTTPBadRequest(
            error='query_parse_error',
            reason='Multi-key fetchs for reduce view must include `group=true`')
        self.session.post.side_effect = error
        opts = ViewQueryOptions()
        opts.include_missing_keys()
        with self.assertRaises(exceptions.RemoteQueryError) as ctx:
            self.db.query_view('articles', 'counts', ['a', 'b'], opts)
        self.assertIs(ctx.exception, error)
        self.assertEqual(ctx.exception.reason,
                         'Multi-key fetchs for reduce view must include `group=true`')

    def test_view_shortcut(self):
        self.session.get.return_value = json_response({'rows': []})
        self.db.view('_design/articles/by_id', group=True)
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_design/articles/_view/by_id')
        self.assertEqual(self.session.get.call_args[1]['params'], {'group': 'true'})

        self.db.view('articles/by_id')
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_design/articles/_view/by_id')

        self.db.view('_all_docs')
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_all_docs')


class QueryAllDocsTestCase(ClientTestCase):

    def test_get(self):
        self.session.get.return_value = json_response({
            'total_rows': 1, 'offset': 0,
            'rows': [{'id': 'x', 'key': 'x', 'value': {'rev': '1-a'}}],
        })
        result = self.db.query_all_docs()
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_all_docs')
        self.assertEqual(result[0].id, 'x')

    def test_post_with_missing_keys(self):
        self.session.post.return_value = json_response({
            'rows': [{'id': 'y', 'key': 'y', 'value': {'rev': '1-b'}}],
        })
        result = self.db.query_all_docs(['x', 'y'], {'include_missing_keys': True})
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_all_docs')
        self.assertEqual(self.session.post.call_args[1]['json'], {'keys': ['x', 'y']})
        self.assertEqual([row.id for row in result], [None, 'y'])

    def test_iter(self):
        self.session.get.return_value = json_response({'rows': [
            {'id': 'a', 'key': 'a', 'value': {}},
            {'id': 'b', 'key': 'b', 'value': {}},
        ]})
        self.assertEqual(list(self.db), ['a', 'b'])


class QueryTempViewTestCase(ClientTestCase):

    def test_inline_body(self):
        self.session.post.return_value = json_response({'rows': [{'key': None, 'value': 3}]})
        result = self.db.query_temp_view(MAP, REDUCE)
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_temp_view')
        self.assertEqual(self.session.post.call_args[1]['json'],
                         {'map': MAP, 'reduce': REDUCE, 'language': 'php'})
        self.assertEqual(result[0].value, 3)

    def test_keys_and_missing_rows(self):
        self.session.post.return_value = json_response({'rows': [{'id': '1', 'key': 2, 'value': None}]})
        result = self.db.query_temp_view(MAP, keys=[1, 2], options={'include_missing_keys': True})
        body = self.session.post.call_args[1]['json']
        self.assertEqual(body, {'map': MAP, 'language': 'php', 'keys': [1, 2]})
        self.assertEqual([row.id for row in result], [None, '1'])

    def test_builtin_reduce(self):
        self.session.post.return_value = json_response({'rows': []})
        self.db.query_temp_view(MAP, '_sum')
        self.assertEqual(self.session.post.call_args[1]['json']['reduce'], '_sum')

    def test_other_language(self):
        self.session.post.return_value = json_response({'rows': []})
        self.db.query_temp_view('function(doc) { emit(doc._id, null); }', language='javascript')
        self.assertEqual(self.session.post.call_args[1]['json']['language'], 'javascript')

    def test_invalid_function_sends_nothing(self):
        self.assertRaises(exceptions.FunctionShapeError,
                          self.db.query_temp_view, 'function($x){ $emit($x); }')
        self.assertRaises(exceptions.FunctionSyntaxError,
                          self.db.query_temp_view, MAP, 'function($keys, $values, $rereduce) { (; };')
        self.session.post.assert_not_called()


class DatabaseTestCase(ClientTestCase):

    def test_prefix(self):
        server = client.Server(session=self.session, config=Config(db_prefix='test_'))
        db = client.Database(server, 'items', check=False)
        self.assertEqual(str(db.path), 'test_items')
        self.assertEqual(db.name, 'items')

    def test_empty_name(self):
        self.assertRaises(exceptions.InvalidArgumentError, client.Database, self.server, '')

    def test_check(self):
        self.session.head.side_effect = exceptions.HTTPNotFound()
        self.assertRaises(exceptions.MissingDatabase, client.Database, self.server, 'nope')

    def test_getitem_returns_variant(self):
        self.session.get.return_value = json_response({'_id': '_design/articles', '_rev': '1-a', 'views': {}})
        doc = self.db['_design/articles']
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_design/articles')
        self.assertIsInstance(doc, documents.DesignDocument)

    def test_getitem_missing(self):
        self.session.get.side_effect = exceptions.HTTPNotFound()
        self.assertRaises(exceptions.MissingDocument, self.db.__getitem__, 'nope')

    def test_get_default(self):
        self.session.get.side_effect = exceptions.HTTPNotFound()
        self.assertEqual(self.db.get('nope', default={}), {})

    def test_get_options(self):
        self.session.get.return_value = json_response({'_id': 'a', '_rev': '2-b'})
        self.db.get('a', rev='1-a', revs=True)
        self.assertEqual(self.session.get.call_args[1]['params'], {'rev': '1-a', 'revs': 'true'})

    def test_save_design_document(self):
        self.session.put.return_value = json_response({'ok': True, 'id': '_design/articles', 'rev': '1-a'})
        ddoc = documents.DesignDocument.create('articles', language='php')
        view = ViewDefinition('articles_by_id', language='php')
        view.set_map_function(MAP)
        view.use_builtin_count()
        ddoc.add_view(view)
        self.assertEqual(self.db.save(ddoc), ('_design/articles', '1-a'))
        self.assertEqual(self.call_path(self.session.put), 'pyqueries/_design/articles')
        self.assertEqual(ddoc.rev, '1-a')

    def test_save_new_document(self):
        self.session.post.return_value = json_response({'ok': True, 'id': 'abc', 'rev': '1-a'})
        doc = {'type': 'Person'}
        self.assertEqual(self.db.save(doc), ('abc', '1-a'))
        self.assertEqual(self.call_path(self.session.post), 'pyqueries')
        self.assertEqual(doc, {'_id': 'abc', '_rev': '1-a', 'type': 'Person'})

    def test_save_batch(self):
        self.session.post.return_value = json_response({'ok': True, 'id': 'abc'})
        doc = {}
        self.assertEqual(self.db.save(doc, batch=True), ('abc', None))
        self.assertEqual(self.session.post.call_args[1]['params'], {'batch': 'ok'})
        self.assertNotIn('_rev', doc)

    def test_save_conflict(self):
        self.session.put.side_effect = exceptions.HTTPConflict()
        self.assertRaises(exceptions.UpdateConflict, self.db.save, {'_id': 'a', '_rev': '1-old'})

    def test_delitem(self):
        self.session.head.return_value = json_response(None, headers={'ETag': '"3-abc"'})
        del self.db['a']
        self.assertEqual(self.call_path(self.session.delete), 'pyqueries/a')
        self.assertEqual(self.session.delete.call_args[1]['params'], {'rev': '3-abc'})

    def test_update(self):
        self.session.post.return_value = json_response([
            {'id': 'a', 'rev': '1-a'},
            {'id': 'b', 'error': 'conflict', 'reason': 'Document update conflict.'},
        ])
        docs = [{'_id': 'a'}, {'_id': 'b'}]
        results = self.db.update(docs)
        self.assertEqual(results[0], (True, 'a', '1-a'))
        self.assertFalse(results[1][0])
        self.assertIsInstance(results[1][2], exceptions.UpdateConflict)
        self.assertEqual(docs[0]['_rev'], '1-a')
        self.assertRaises(exceptions.InvalidArgumentError, self.db.update, ['nope'])

    def test_purge(self):
        self.session.post.return_value = json_response({'purged': {}})
        self.db.purge([{'_id': 'a', '_rev': '1-a'}, {'_id': 'a', '_rev': '2-b'}])
        self.assertEqual(self.session.post.call_args[1]['json'], {'a': ['1-a', '2-b']})

    def test_copy(self):
        self.session.request.return_value = json_response({'id': 'b', 'rev': '2-c'})
        self.assertEqual(self.db.copy('a', {'_id': 'b', '_rev': '1-b'}), '2-c')
        args, kwargs = self.session.request.call_args
        self.assertEqual(args[0], 'COPY')
        self.assertEqual(kwargs['headers'], {'Destination': 'b?rev=1-b'})

    def test_put_attachment(self):
        self.session.put.return_value = json_response({'ok': True, 'rev': '2-a'})
        doc = {'_id': 'a', '_rev': '1-a'}
        self.assertEqual(self.db.put_attachment(doc, b'hello', 'greeting.txt'), '2-a')
        self.assertEqual(self.call_path(self.session.put), 'pyqueries/a/greeting.txt')
        self.assertEqual(self.session.put.call_args[1]['headers'],
                         {'Content-Type': 'text/plain', 'If-Match': '1-a'})
        self.assertEqual(doc['_rev'], '2-a')

    def test_get_attachment_missing(self):
        self.session.get.side_effect = exceptions.HTTPNotFound()
        self.assertIsNone(self.db.get_attachment('a', 'missing.txt'))

    def test_compact_views_needs_name(self):
        self.assertRaises(exceptions.InvalidArgumentError, self.db.compact_views, '')

    def test_revs_limit(self):
        self.session.get.return_value = json_response(1000)
        self.assertEqual(self.db.revs_limit, 1000)
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_revs_limit')

        self.db.revs_limit = 50
        self.assertEqual(self.call_path(self.session.put), 'pyqueries/_revs_limit')
        self.assertEqual(self.session.put.call_args[1]['json'], 50)

    def test_revs_limit_must_be_positive(self):
        for value in (0, -1, '10', 2.5, True):
            with self.assertRaises(exceptions.InvalidArgumentError):
                self.db.revs_limit = value
        self.session.put.assert_not_called()

    def test_ensure_full_commit(self):
        self.session.post.return_value = json_response({'ok': True, 'instance_start_time': '0'})
        self.assertEqual(self.db.ensure_full_commit(), '0')
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_ensure_full_commit')

    def test_etag(self):
        self.session.head.return_value = json_response(None, headers={'ETag': '"2-xyz"'})
        self.assertEqual(self.db.etag('a'), '2-xyz')
        self.session.head.side_effect = exceptions.HTTPNotFound()
        self.assertRaises(exceptions.MissingDocument, self.db.etag, 'nope')

    def test_missing_revs(self):
        self.session.post.return_value = json_response({'missing_revs': {'a': ['2-b']}})
        self.assertEqual(self.db.missing_revs({'a': ['1-a', '2-b']}), {'a': ['2-b']})
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_missing_revs')
        self.assertEqual(self.session.post.call_args[1]['json'], {'a': ['1-a', '2-b']})

    def test_revs_diff(self):
        self.session.post.return_value = json_response({'a': {'missing': ['2-b']}})
        self.assertEqual(self.db.revs_diff({'a': ['2-b']}), {'a': {'missing': ['2-b']}})
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_revs_diff')


class ChangesTestCase(ClientTestCase):

    def test_normal_feed(self):
        self.session.get.return_value = json_response({'results': [], 'last_seq': '5-g1'})
        data = self.db.changes(since=3, include_docs=True)
        self.assertEqual(data['last_seq'], '5-g1')
        self.assertEqual(self.call_path(self.session.get), 'pyqueries/_changes')
        self.assertEqual(self.session.get.call_args[1]['params'],
                         {'since': '3', 'include_docs': 'true'})

    def test_options_object(self):
        self.session.get.return_value = json_response({'results': []})
        opts = ChangesFeedOptions()
        opts.set_feed_type('longpoll')
        opts.set_since('now')
        self.db.changes(opts)
        self.assertEqual(self.session.get.call_args[1]['params'],
                         {'feed': 'longpoll', 'since': 'now'})

    def test_continuous_feed(self):
        resp = mock.Mock()
        resp.iter_lines.return_value = iter([
            b'{"seq": 1, "id": "a", "changes": [{"rev": "1-a"}]}',
            b'',
            b'{"seq": 2, "id": "b", "changes": [{"rev": "1-b"}]}',
            b'{"last_seq": 2}',
            b'{"seq": 3, "id": "never"}',
        ])
        self.session.get.return_value = resp
        events = list(self.db.changes(feed='continuous', timeout=1000))
        self.assertEqual([event.get('id') for event in events], ['a', 'b', None])
        self.assertEqual(events[-1], {'last_seq': 2})
        kwargs = self.session.get.call_args[1]
        self.assertTrue(kwargs['stream'])
        self.assertEqual(kwargs['params'], {'feed': 'continuous', 'timeout': '1000'})
        resp.close.assert_called_once_with()

    def test_selector(self):
        self.session.post.return_value = json_response({'results': []})
        self.db.changes(selector={'type': 'Person'})
        self.assertEqual(self.call_path(self.session.post), 'pyqueries/_changes')
        kwargs = self.session.post.call_args[1]
        self.assertEqual(kwargs['json'], {'selector': {'type': 'Person'}})
        self.assertEqual(kwargs['params'], {'filter': '_selector'})

    def test_timeout_needs_continuous_feed(self):
        self.assertRaises(exceptions.InvalidArgumentError, self.db.changes, timeout=1000)
        self.session.get.assert_not_called()


class ServerTestCase(ClientTestCase):

    def test_create_existing(self):
        self.session.put.side_effect = exceptions.HTTPPreconditionFailed()
        self.assertRaises(exceptions.DatabaseExists, self.server.create, 'pyqueries')

    def test_delete_missing(self):
        self.session.delete.side_effect = exceptions.HTTPNotFound()
        self.assertRaises(exceptions.MissingDatabase, self.server.delete, 'pyqueries')

    def test_version_info(self):
        self.session.get.return_value = json_response({'couchdb': 'Welcome', 'version': '3.3.2'})
        self.assertEqual(self.server.version_info(), (3, 3, 2))
        self.server.version_info()
        self.session.get.assert_called_once()

    def test_replicate_names(self):
        self.session.post.return_value = json_response({'ok': True})
        self.server.replicate('source', 'http://remote:5984/target', create_target=True)
        self.assertEqual(self.session.post.call_args[1]['json'], {
            'source': 'http://localhost:5984/source',
            'target': 'http://remote:5984/target',
            'create_target': True,
        })

    def test_uuids(self):
        self.session.get.return_value = json_response({'uuids': ['a', 'b']})
        self.assertEqual(self.server.uuids(2), ['a', 'b'])
        self.assertRaises(exceptions.InvalidArgumentError, self.server.uuids, 0)

    def test_login_failed(self):
        self.session.post.side_effect = exceptions.HTTPUnauthorized()
        self.assertRaises(exceptions.LoginFailed, self.server.login, 'joe', 'wrong')

    def test_config_section(self):
        self.session.get.return_value = json_response({'bind_address': '127.0.0.1'})
        self.server.config_section('chttpd')
        self.assertEqual(self.call_path(self.session.get), '_node/_local/_config/chttpd')
        self.assertRaises(exceptions.InvalidArgumentError, self.server.config_section, key='port')

    def test_db_updates(self):
        self.session.get.return_value = json_response({'results': [], 'last_seq': '1-a'})
        opts = DbUpdatesFeedOptions()
        opts.set_feed_type('longpoll')
        opts.do_not_keep_alive()
        self.assertEqual(self.server.db_updates(opts)['last_seq'], '1-a')
        self.assertEqual(self.call_path(self.session.get), '_db_updates')
        self.assertEqual(self.session.get.call_args[1]['params'],
                         {'feed': 'longpoll', 'heartbeat': 'false'})

    def test_db_updates_continuous(self):
        resp = mock.Mock()
        resp.iter_lines.return_value = iter([
            b'{"db_name": "pyqueries", "type": "created", "seq": "1-a"}',
            b'',
            b'{"db_name": "pyqueries", "type": "updated", "seq": "2-b"}',
        ])
        self.session.get.return_value = resp
        events = list(self.server.db_updates(feed='continuous', timeout=10))
        self.assertEqual([event['type'] for event in events], ['created', 'updated'])
        self.assertEqual(self.session.get.call_args[1]['params'],
                         {'feed': 'continuous', 'timeout': '10'})
        resp.close.assert_called_once_with()

    def test_db_updates_bad_timeout(self):
        self.assertRaises(exceptions.InvalidArgumentError, self.server.db_updates,
                          feed='continuous', timeout=0)
        self.session.get.assert_not_called()

    def test_url_overrides_config(self):
        server = client.Server('http://example.com:5984', session=self.session,
                               config=Config(db_prefix='p_'))
        self.assertEqual(server.url, 'http://example.com:5984/')
        self.assertEqual(server.config.db_prefix, 'p_')
        self.assertEqual(self.session.base_url, 'http://example.com:5984/')
