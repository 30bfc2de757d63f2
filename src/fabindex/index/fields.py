"""Mapping of configured field types onto index engine fields."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fabindex.errors import FieldValueError, UnsupportedFieldType
from fabindex.models import FieldConfig
from fabindex.protocols.engine import IndexWriter, SchemaBuilder

LOGGER = logging.getLogger(__name__)

# Field types backed by engine text fields; "text" values are tokenized.
TEXT_FIELD_TYPES = {"text": True, "string": False}


def _check_type(field: FieldConfig) -> bool:
    try:
        return TEXT_FIELD_TYPES[field.field_type]
    except KeyError:
        raise UnsupportedFieldType(field.name, field.field_type) from None


def _render_scalar(field: FieldConfig, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise FieldValueError(field.name, type(value).__name__)


class FieldExtractor:
    """Converts metadata values into index writes for configured fields."""

    def text_options(self, field: FieldConfig) -> Dict[str, Any]:
        tokenized = _check_type(field)
        options: Dict[str, Any] = {"stored": True, "tokenized": tokenized}
        options.update(field.options)
        return options

    def schema_field(self, builder: SchemaBuilder, field: FieldConfig) -> int:
        """Declare ``field`` on the schema builder."""
        return builder.add_text_field(field.name, self.text_options(field))

    def render(self, field: FieldConfig, raw_value: Any) -> List[str]:
        """Return the text values to index for ``raw_value``.

        Lists of scalars index one value per element; ``None`` indexes
        nothing.
        """
        _check_type(field)
        if raw_value is None:
            return []
        if isinstance(raw_value, list):
            values = []
            for item in raw_value:
                if item is None:
                    continue
                if isinstance(item, (dict, list)):
                    raise FieldValueError(field.name, type(item).__name__)
                values.append(_render_scalar(field, item))
            return values
        return [_render_scalar(field, raw_value)]

    def add_field(self, writer: IndexWriter, document_id: int, field: FieldConfig, raw_value: Any) -> int:
        """Append ``raw_value`` to ``field`` of a document; returns values written."""
        values = self.render(field, raw_value)
        for value in values:
            writer.add_text(document_id, field.name, value)
        if not values:
            LOGGER.debug("No value to index for field %s on document %s", field.name, document_id)
        return len(values)
