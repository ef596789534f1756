from couchview import exceptions
from couchview.client import Server, Database
from couchview.config import Config
from couchview.design import ViewDefinition
from couchview.documents import Document, DesignDocument, LocalDocument
from couchview.options import ChangesFeedOptions, DbUpdatesFeedOptions, ViewQueryOptions
from couchview.validation import FunctionValidator, Script
from couchview.views import QueryResult, Row

__version__ = '0.1.0'
