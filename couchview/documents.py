"""Document types returned by `Database`.

The variant is chosen from the ``_id`` of the payload, never from metadata
stored inside the document:

>>> type(load_document({'_id': '_design/articles'})).__name__
'DesignDocument'
>>> type(load_document({'_id': '_local/checkpoint'})).__name__
'LocalDocument'
>>> type(load_document({'_id': 'john'})).__name__
'Document'
"""
from couchview import exceptions
from couchview.design import ViewDefinition

__all__ = ['Document', 'DesignDocument', 'LocalDocument', 'load_document']

DESIGN_PREFIX = '_design/'
LOCAL_PREFIX = '_local/'


class Document(dict):
    """Representation of a document in the database.

    This is basically just a dictionary with the two additional properties
    `id` and `rev`, which contain the document ID and revision, respectively.
    """
    prefix = ''

    def __repr__(self):
        return '<%s %r@%r %r>' % (type(self).__name__, self.id, self.rev,
                                  dict([(k, v) for k, v in self.items()
                                        if k not in ('_id', '_rev')]))

    @property
    def id(self):
        """The document ID.

        :rtype: str
        """
        return self.get('_id')

    @property
    def rev(self):
        """The document revision.

        :rtype: str
        """
        return self.get('_rev')

    @property
    def name(self):
        """The ID without its ``_design/`` or ``_local/`` prefix."""
        doc_id = self.id
        if doc_id and self.prefix and doc_id.startswith(self.prefix):
            return doc_id[len(self.prefix):]
        return doc_id


class LocalDocument(Document):
    """A non-replicated ``_local/`` document."""
    prefix = LOCAL_PREFIX


class DesignDocument(Document):
    """A ``_design/`` document holding views.

    >>> ddoc = DesignDocument.create('articles', language='php')
    >>> view = ViewDefinition('by_id')
    >>> view.set_map_function('function($doc) use ($emit) { $emit($doc->_id); };')
    >>> ddoc.add_view(view)
    >>> ddoc.view_names()
    ['by_id']
    """
    prefix = DESIGN_PREFIX

    @classmethod
    def create(cls, name, language=None):
        if not name:
            raise exceptions.InvalidArgumentError("A design document needs a name")
        if name.startswith(DESIGN_PREFIX):
            name = name[len(DESIGN_PREFIX):]
        doc = cls(_id=DESIGN_PREFIX + name)
        if language:
            doc['language'] = language
        return doc

    @property
    def language(self):
        return self.get('language')

    def add_view(self, view):
        """Store ``view`` under ``views``, replacing a view of the same name.

        :raise InvalidArgumentError: if the view has no name or no map function
        """
        if not view.is_consistent():
            raise exceptions.InvalidArgumentError(
                "View %r needs a name and a map function" % view.name)
        self.setdefault('views', {})[view.name] = view.serialize()

    def get_view(self, name):
        """Return the stored view ``name`` as a `ViewDefinition`.

        :raise MissingView: if the design document has no such view
        """
        try:
            data = self.get('views', {})[name]
        except KeyError as exc:
            raise exceptions.MissingView("View %r does not exist in %r" % (name, self.id)) from exc
        return ViewDefinition.from_dict(name, data)

    def view_names(self):
        return sorted(self.get('views', {}))

    def reset_views(self):
        """Drop every stored view so they can be added again from code."""
        self['views'] = {}


def load_document(data):
    """Wrap a decoded document body in the matching `Document` variant."""
    doc_id = data.get('_id') or ''
    if doc_id.startswith(DESIGN_PREFIX):
        return DesignDocument(data)
    if doc_id.startswith(LOCAL_PREFIX):
        return LocalDocument(data)
    return Document(data)
