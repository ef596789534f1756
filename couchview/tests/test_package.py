# -*- coding: utf-8 -*-

import unittest
import couchview


class TestPackage(unittest.TestCase):

    def test_exports(self):
        expected = set([
            # couchview.client
            'Server', 'Database',
            # couchview.documents
            'Document', 'DesignDocument', 'LocalDocument',
            # couchview.design, couchview.options, couchview.views
            'ViewDefinition', 'ViewQueryOptions', 'QueryResult', 'Row',
            'ChangesFeedOptions', 'DbUpdatesFeedOptions',
            'Config', 'FunctionValidator', 'Script',
            'exceptions',
        ])
        exported = set(e for e in dir(couchview) if not e.startswith('_'))
        self.assertTrue(expected <= exported)
