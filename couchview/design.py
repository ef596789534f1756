# -*- coding: utf-8 -*-

"""Utility code for defining views stored in design documents."""

from copy import deepcopy

from couchview import exceptions
from couchview.validation import (Script, BUILTIN_REDUCE_FUNCTIONS,
                                  EMBEDDED_LANGUAGE, unescape, validator_for)

__all__ = ['ViewDefinition']


class ViewDefinition(object):
    """Definition of one view: a map function, an optional reduce function
    and per-view options.

    >>> view = ViewDefinition('by_id', language='php')
    >>> view.set_map_function('function($doc) use ($emit) { $emit($doc->idItem, NULL); };')
    >>> view.use_builtin_count()
    >>> sorted(view.serialize())
    ['language', 'map', 'reduce']
    >>> view.serialize()['reduce']
    '_count'

    With ``language='php'`` both functions are checked when they are set.
    Leaving the language as `None` means the view inherits the language of
    its design document and the sources are stored as they are.
    """

    def __init__(self, name, language=None, validator=None):
        """Initialize the view definition.

        :param name: the name of the view
        :param language: the language of the map and reduce functions, or
                         `None` to inherit it from the design document
        :param validator: an optional `FunctionValidator` overriding the one
                          registered for ``language``
        """
        if not name:
            raise exceptions.InvalidArgumentError("A view needs a name")
        self.name = name
        self.language = language
        self._validator = validator
        self.map_function = ''
        self.reduce_function = ''
        self.options = {}

    def __repr__(self):
        return '<%s %r>' % (type(self).__name__, self.name)

    @classmethod
    def from_dict(cls, name, data):
        """Rebuild a definition from a ``views`` entry of a stored design
        document. The stored sources are trusted and not validated again.
        """
        view = cls(name, language=data.get('language'))
        view.map_function = data.get('map', '')
        view.reduce_function = data.get('reduce', '')
        view.options = deepcopy(data.get('options', {}))
        return view

    @property
    def validator(self):
        if self._validator is not None:
            return self._validator
        return validator_for(self.language)

    @property
    def map_script(self):
        return Script(self.language, self.map_function)

    @property
    def reduce_script(self):
        return Script(self.language, self.reduce_function)

    def set_map_function(self, text):
        """Set the map function.

        For PHP views the closure must be declared like::

            function($doc) use ($emit) {
              $emit($key, $value);
            };

        :raise FunctionSyntaxError: if the source does not parse
        :raise FunctionShapeError: if the closure has the wrong signature
        """
        source = unescape(str(text))
        validator = self.validator
        if validator is not None:
            validator.check_map(source)
        self.map_function = source

    def set_reduce_function(self, text):
        """Set a custom reduce function.

        For PHP views the closure must be declared like::

            function($keys, $values, $rereduce) {
              ...
            };
        """
        source = unescape(str(text))
        validator = self.validator
        if validator is not None:
            validator.check_reduce(source)
        self.reduce_function = source

    def use_builtin_count(self):
        """Reduce with the server's ``_count``: the number of mapped values."""
        self.reduce_function = '_count'

    def use_builtin_sum(self):
        """Reduce with the server's ``_sum``. All mapped values must be numbers."""
        self.reduce_function = '_sum'

    def use_builtin_stats(self):
        """Reduce with the server's ``_stats``: sum, count, min, max and sum
        of squares of the mapped values."""
        self.reduce_function = '_stats'

    def include_local_seq(self):
        """Make each document's local sequence number available to the map
        function as ``_local_seq``."""
        self.options['local_seq'] = True

    def include_design_docs(self):
        """Call the map function on design documents too."""
        self.options['include_design'] = True

    def is_consistent(self):
        return bool(self.name) and bool(self.map_function)

    def reset(self):
        """Clear both functions and all options."""
        self.map_function = ''
        self.reduce_function = ''
        self.options = {}

    def serialize(self):
        """Return the view as stored under ``views`` in a design document.

        ``reduce`` is left out entirely for map-only views.
        """
        view = {'map': self.map_function}
        if self.language:
            view['language'] = self.language
        if self.reduce_function:
            view['reduce'] = self.reduce_function
        if self.options:
            view['options'] = dict(self.options)
        return view


def temp_view(map_function, reduce_function=None, language=EMBEDDED_LANGUAGE):
    """Build the inline definition posted to ``_temp_view``."""
    view = ViewDefinition('temp', language=language)
    view.set_map_function(map_function)
    if reduce_function in BUILTIN_REDUCE_FUNCTIONS:
        view.reduce_function = reduce_function
    elif reduce_function:
        view.set_reduce_function(reduce_function)
    return view
