# -*- coding: utf-8 -*-

"""Static checks for embedded map and reduce functions.

A view whose language is ``php`` carries PHP closures that the server side
query server evaluates. Their source is checked here, before it is ever
stored in a design document:

>>> validator = FunctionValidator()
>>> validator.check_map('function($doc) use ($emit) { $emit($doc->_id, NULL); };')
>>> validator.check_map('function($x){ $emit($x); }')
Traceback (most recent call last):
  ...
couchview.exceptions.FunctionShapeError: The function must be defined like: function($doc) use ($emit) { ... };

Other languages are stored as opaque text; `validator_for` returns `None`
for them.
"""
import collections
import logging
import re
import shutil
import subprocess
import types

from couchview import exceptions

__all__ = ['Script', 'ShapeRule', 'FunctionValidator', 'DelimiterChecker',
           'PhpLintChecker', 'default_checker', 'validator_for',
           'EMBEDDED_LANGUAGE']

log = logging.getLogger(__name__)

EMBEDDED_LANGUAGE = 'php'

BUILTIN_REDUCE_FUNCTIONS = ('_count', '_sum', '_stats')


class Script(collections.namedtuple('Script', ['language', 'source'])):
    """Function source text tagged with the language it is written in."""
    __slots__ = ()

    @property
    def is_builtin(self):
        """Whether the source names a reduce function provided by the server."""
        return self.source in BUILTIN_REDUCE_FUNCTIONS

    def __bool__(self):
        return bool(self.source)


ShapeRule = collections.namedtuple('ShapeRule', ['definition', 'regex'])

MAP_RULE = ShapeRule(
    "function($doc) use ($emit) { ... };",
    re.compile(r'function\s*\(\s*\$doc\s*\)\s*use\s*\(\s*\$emit\s*\)\s*\{[\W\w]*\}\s*;?\s*\Z'),
)

REDUCE_RULE = ShapeRule(
    "function($keys, $values, $rereduce) { ... };",
    re.compile(r'function\s*\(\s*\$keys\s*,\s*\$values\s*,\s*\$rereduce\s*\)\s*\{[\W\w]*\}\s*;?\s*\Z'),
)


class DelimiterChecker(object):
    """Syntax checker that needs no interpreter.

    It walks the source once, skipping string literals and comments, and
    reports unterminated literals or comments and any bracket that is
    unbalanced or closed by the wrong partner.
    """

    _pairs = {')': '(', ']': '[', '}': '{'}

    def check(self, source):
        """Return a diagnostic string, or `None` if the source looks sound."""
        stack = []
        line = 1
        i, n = 0, len(source)
        while i < n:
            char = source[i]
            if char == '\n':
                line += 1
            elif char in '\'"':
                start = line
                i += 1
                while i < n and source[i] != char:
                    if source[i] == '\\':
                        i += 1
                    elif source[i] == '\n':
                        line += 1
                    i += 1
                if i >= n:
                    return "unterminated string literal starting on line %d" % start
            elif char == '#' or source.startswith('//', i):
                while i < n and source[i] != '\n':
                    i += 1
                continue
            elif source.startswith('/*', i):
                end = source.find('*/', i + 2)
                if end == -1:
                    return "unterminated comment starting on line %d" % line
                line += source.count('\n', i, end)
                i = end + 2
                continue
            elif char in '([{':
                stack.append((char, line))
            elif char in ')]}':
                if not stack:
                    return "unexpected '%s' on line %d" % (char, line)
                opening, opened_on = stack.pop()
                if opening != self._pairs[char]:
                    return "'%s' on line %d closes '%s' opened on line %d" % (
                        char, line, opening, opened_on)
            i += 1
        if stack:
            opening, opened_on = stack[-1]
            return "unclosed '%s' opened on line %d" % (opening, opened_on)
        return None


class PhpLintChecker(object):
    """Syntax checker delegating to ``php -l``.

    :param executable: the PHP binary; looked up on ``PATH`` when omitted
    :raise InvalidArgumentError: if no PHP binary can be found
    """

    def __init__(self, executable=None):
        self.executable = executable or shutil.which('php')
        if not self.executable:
            raise exceptions.InvalidArgumentError("No PHP executable found")

    def check(self, source):
        # The trailing empty statement keeps a closure without ';' lintable.
        proc = subprocess.run(
            [self.executable, '-l'],
            input='<?php\n' + source + '\n;',
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            universal_newlines=True,
        )
        if proc.returncode == 0:
            return None
        return proc.stdout.strip() or "php -l exited with status %d" % proc.returncode


def default_checker():
    """Return a `PhpLintChecker` when a ``php`` binary is on ``PATH``,
    otherwise a `DelimiterChecker`."""
    executable = shutil.which('php')
    if executable:
        return PhpLintChecker(executable)
    log.debug('No php binary on PATH, falling back to delimiter checks')
    return DelimiterChecker()


class FunctionValidator(object):
    """Checks function source against a syntax checker and a shape rule.

    :param checker: an object with a ``check(source)`` method returning a
                    diagnostic or `None`; defaults to `default_checker()`
    """

    def __init__(self, checker=None):
        self.checker = checker or default_checker()

    def check_function(self, source, definition, shape):
        """Validate ``source``.

        :param source: the function source text
        :param definition: a readable example of the required signature
        :param shape: compiled regex the source must match
        :raise FunctionSyntaxError: if the checker reports a problem
        :raise FunctionShapeError: if the source does not match ``shape``
        """
        diagnostic = self.checker.check(source)
        if diagnostic:
            log.debug('Rejected function source: %s', diagnostic)
            raise exceptions.FunctionSyntaxError(diagnostic)
        if not shape.search(source):
            raise exceptions.FunctionShapeError(definition)

    def check_map(self, source):
        self.check_function(source, MAP_RULE.definition, MAP_RULE.regex)

    def check_reduce(self, source):
        self.check_function(source, REDUCE_RULE.definition, REDUCE_RULE.regex)


DEFAULT_VALIDATORS = types.MappingProxyType({
    EMBEDDED_LANGUAGE: FunctionValidator(),
})


def validator_for(language, validators=None):
    """Return the validator registered for ``language``, or `None` when
    functions in that language are stored without local checks.

    :param validators: mapping of language name to validator; defaults to
                       `DEFAULT_VALIDATORS`
    """
    if validators is None:
        validators = DEFAULT_VALIDATORS
    return validators.get(language)


def unescape(text):
    """Strip backslash escapes: ``\\x`` becomes ``x`` and ``\\\\`` becomes ``\\``."""
    return re.sub(r'\\(.?)', r'\1', text, flags=re.DOTALL)
