#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright (C) 2007-2009 Christopher Lenz
# All rights reserved.
#
# This software is licensed as described in the file COPYING, which
# you should have received as part of this distribution.

from setuptools import setup

setup(
    name='couchview',
    version='0.1.0',
    description='CouchDB client with ordered, gap-filling view queries',
    long_description="""
    A Python client for CouchDB focused on views: design documents with
    validated embedded map/reduce functions, view queries by key list, and
    results that keep the order of the requested keys, with placeholder rows
    for keys the view has no row for.""",
    license='BSD',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database :: Front-Ends',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    packages=['couchview', 'couchview.tests'],
    python_requires='>=3.6',
    install_requires=[
        "furl",
        "requests",
        "requests_toolbelt",
    ],
    zip_safe=True,
)
