"""
Field Map Loader

Reads the page layouts under documents/, checks each one against its
JSON schema and the normalizer's canonical names, and keeps them in
memory keyed by slug. A broken layout stops the app at startup rather
than producing a half-filled PDF later.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
import yaml

from .exceptions import ConfigurationError, ValidationError
from .normalizer import known_canonical_names
from .types import LETTER_SIZE, FieldMapDefinition

logger = logging.getLogger(__name__)

DOCUMENTS_DIR = Path(__file__).parent.parent.parent / 'documents'
SCHEMA_DIR = DOCUMENTS_DIR / 'schema'

DEFAULT_SLUG = 'transaction-summary'
LAYOUT_SUFFIXES = ('.yml', '.yaml')


def layout_problems(raw: Dict[str, Any]) -> List[str]:
    """
    Checks the JSON schema can't express: every source must be a
    canonical name, field keys must be unique and every point must sit
    on the page.
    """
    problems = []
    fields = raw.get('fields') or []
    known = set(known_canonical_names())

    for entry in fields:
        if entry.get('source') not in known:
            problems.append(f"Field '{entry.get('field_key')}' reads unknown source '{entry.get('source')}'")

    seen = set()
    repeated = set()
    for entry in fields:
        key = entry.get('field_key')
        (repeated if key in seen else seen).add(key)
    if repeated:
        problems.append(f"Duplicate field_keys: {sorted(repeated)}")

    width, height = raw.get('page_size') or LETTER_SIZE
    for entry in fields:
        if not (0 <= entry['x'] <= width and 0 <= entry['y'] <= height):
            problems.append(
                f"Field '{entry['field_key']}' at ({entry['x']}, {entry['y']}) is outside the {width}x{height} page"
            )

    return problems


class FieldMapLoader:
    """
    Process-wide cache of field maps.

    Usage:
        FieldMapLoader.load_all()                       # app startup
        field_map = FieldMapLoader.get_or_raise()       # per request
    """

    _definitions: Dict[str, FieldMapDefinition] = {}
    _schemas: Dict[str, dict] = {}
    _validated: bool = False

    @classmethod
    def load_all(cls, directory: Path = None) -> None:
        """
        (Re)build the cache from every YAML file in `directory`.

        Raises:
            ConfigurationError: listing every file that failed, after
                trying all of them
        """
        directory = Path(directory) if directory else DOCUMENTS_DIR
        cls._definitions.clear()
        cls._validated = False
        cls._read_schemas()

        if not directory.is_dir():
            raise ConfigurationError(f"Field map directory not found: {directory}")

        paths = sorted(p for p in directory.iterdir() if p.suffix in LAYOUT_SUFFIXES)
        if not paths:
            raise ConfigurationError(f"No field map definitions found in {directory}")

        failures = []
        for path in paths:
            try:
                definition = cls._parse(path.read_text(), source=path.name)
            except ValidationError as e:
                failures.append(f"{path.name}: {e}")
                continue

            owner = cls._definitions.get(definition.slug)
            if owner is not None:
                failures.append(f"{path.name}: slug '{definition.slug}' is already used by another field map")
                continue

            cls._definitions[definition.slug] = definition
            logger.debug(f"Field map {definition.slug}: {len(definition.fields)} fields, {definition.max_page} page(s)")

        if failures:
            message = "Field map configuration errors:\n" + "\n".join(f"  - {f}" for f in failures)
            logger.error(message)
            raise ConfigurationError(message)

        cls._validated = True
        logger.info(f"Field maps ready: {', '.join(cls._definitions)}")

    @classmethod
    def _read_schemas(cls) -> None:
        cls._schemas.clear()
        if not SCHEMA_DIR.is_dir():
            raise ConfigurationError(f"Schema directory not found: {SCHEMA_DIR}")

        for path in SCHEMA_DIR.glob('v*.json'):
            try:
                cls._schemas[path.stem] = json.loads(path.read_text())
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid schema {path.name}: {e}") from e

    @classmethod
    def _parse(cls, text: str, source: str = '<string>') -> FieldMapDefinition:
        """YAML text to a checked FieldMapDefinition, or ValidationError."""
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValidationError(f"YAML syntax error: {e}") from e

        if not raw:
            raise ValidationError("Empty field map definition")
        if not isinstance(raw, dict):
            raise ValidationError("Field map must be a mapping")

        slug = raw.get('slug')
        version = str(raw.get('schema_version', '1.0'))
        schema = cls._schemas.get(f"v{version}")
        if schema is None:
            raise ValidationError(f"Unknown schema version: {version}", slug=slug)

        try:
            jsonschema.validate(raw, schema)
        except jsonschema.ValidationError as e:
            raise ValidationError(f"Schema validation failed: {e.message}", slug=slug) from e

        problems = layout_problems(raw)
        if problems:
            raise ValidationError("; ".join(problems), slug=slug)

        logger.debug(f"Parsed field map {slug} from {source}")
        return FieldMapDefinition.from_dict(raw)

    @classmethod
    def get(cls, slug: str = DEFAULT_SLUG) -> Optional[FieldMapDefinition]:
        return cls._definitions.get(slug)

    @classmethod
    def get_or_raise(cls, slug: str = DEFAULT_SLUG) -> FieldMapDefinition:
        definition = cls._definitions.get(slug)
        if definition is None:
            raise ValidationError(f"Unknown field map slug: {slug}", slug=slug)
        return definition

    @classmethod
    def all(cls) -> List[FieldMapDefinition]:
        return list(cls._definitions.values())

    @classmethod
    def all_slugs(cls) -> List[str]:
        return sorted(cls._definitions)

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._validated

    @classmethod
    def clear(cls) -> None:
        """Forget every loaded field map. Used by tests."""
        cls._definitions.clear()
        cls._validated = False

    @classmethod
    def reload(cls) -> None:
        """Re-read documents/ after a layout edit."""
        cls.clear()
        try:
            cls.load_all()
        except ConfigurationError as e:
            logger.error(f"Failed to reload field maps: {e}")
            raise

    @classmethod
    def validate_yaml_content(cls, yaml_content: str) -> List[str]:
        """
        Check a layout before it is committed to documents/.

        Returns:
            Error messages, empty when the layout would load
        """
        if not cls._schemas:
            cls._read_schemas()

        try:
            cls._parse(yaml_content)
        except ValidationError as e:
            return [str(e)]
        return []
