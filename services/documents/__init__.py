"""
Transaction Document System

A configuration-driven system for rendering the transaction summary.
The layout is defined in YAML and values flow through a pipeline of
alias resolution, formatting, sanitizing and drawing.

Usage:
    from services.documents import FieldMapLoader, TemplateLoader, DocumentRenderer, normalize_record

    # On app startup
    FieldMapLoader.load_all()

    # When processing a submission
    record = normalize_record(request.get_json())
    renderer = DocumentRenderer(FieldMapLoader.get_or_raise())
    document = renderer.render(record, TemplateLoader().load())
"""

from .types import (
    FontWeight,
    ClientType,
    FieldPlacement,
    FieldMapDefinition,
    Client,
    NormalizedRecord,
    RenderedDocument
)

from .exceptions import (
    DocumentError,
    ConfigurationError,
    ValidationError,
    TemplateUnavailable,
    TextEncodingError,
    DeliveryError,
    StorageAPIError,
    RecordStoreError
)

from .loader import FieldMapLoader
from .field_resolver import FieldResolver
from .normalizer import normalize_record, build_filename
from .sanitizer import sanitize_text, ensure_encodable
from .template_source import TemplateLoader
from .renderer import DocumentRenderer, render_transaction_pdf
from .transforms import TRANSFORMS, apply_transform

__all__ = [
    # Types
    'FontWeight',
    'ClientType',
    'FieldPlacement',
    'FieldMapDefinition',
    'Client',
    'NormalizedRecord',
    'RenderedDocument',

    # Exceptions
    'DocumentError',
    'ConfigurationError',
    'ValidationError',
    'TemplateUnavailable',
    'TextEncodingError',
    'DeliveryError',
    'StorageAPIError',
    'RecordStoreError',

    # Services
    'FieldMapLoader',
    'FieldResolver',
    'TemplateLoader',
    'DocumentRenderer',
    'normalize_record',
    'build_filename',
    'render_transaction_pdf',
    'sanitize_text',
    'ensure_encodable',

    # Transforms
    'TRANSFORMS',
    'apply_transform',
]
