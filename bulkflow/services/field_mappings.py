"""Resolution of flag-based lookups over a field mapping configuration."""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..errors import ConfigurationError
from ..models.mapping import FieldMapping, FieldMappingConfig, RelationshipKind

logger = logging.getLogger(__name__)

MODEL_FIELD = "model"
SOURCE_IDENTIFIER_FIELD = "source_identifier"
DEFAULT_WORK_IDENTIFIER = "source"

_INDEXED_FLAGS = (
    "source_identifier",
    "generated",
    "related_parents_field_mapping",
    "related_children_field_mapping",
)


class FieldMappingResolver:
    """
    Answers questions about a field mapping configuration.

    The configuration is indexed by flag once, when the resolver is built.
    Relationship lookups are validated lazily so that a configuration error
    surfaces to whoever first asks for the relationship, and the answer is
    cached for the lifetime of the resolver.
    """

    def __init__(
        self,
        config: Optional[FieldMappingConfig] = None,
        model_field_mappings: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            config: Field mapping configuration for the run
            model_field_mappings: Columns consulted for the object type,
                before the literal ``model`` column
        """
        self.config = config or FieldMappingConfig()
        self._configured_model_fields = list(model_field_mappings or [])
        self._by_flag: Dict[str, List[FieldMapping]] = {flag: [] for flag in _INDEXED_FLAGS}
        for mapping in self.config:
            for flag in _INDEXED_FLAGS:
                if mapping.has_flag(flag):
                    self._by_flag[flag].append(mapping)

        self._model_field_mappings: Optional[List[str]] = None
        self._related: Dict[RelationshipKind, Tuple[Optional[str], str]] = {}

    def model_field_mappings(self) -> List[str]:
        """Columns to read an object's type from, always ending in ``model``."""
        if self._model_field_mappings is None:
            columns = list(self._configured_model_fields)
            if not columns:
                model_mapping = self.config.get(MODEL_FIELD)
                if model_mapping:
                    columns = list(model_mapping.from_)
            resolved = [c for c in dict.fromkeys(columns) if c != MODEL_FIELD]
            resolved.append(MODEL_FIELD)
            self._model_field_mappings = resolved
        return self._model_field_mappings

    def related_mapping(self, kind: RelationshipKind) -> Tuple[Optional[str], str]:
        """
        Find the mapping flagged for a relationship kind.

        Returns:
            ``(raw_column, parsed_field)``; ``(None, "parents")`` or
            ``(None, "children")`` when nothing is flagged

        Raises:
            ConfigurationError: if more than one mapping is flagged
        """
        kind = RelationshipKind(kind)
        if kind not in self._related:
            flagged = self._by_flag[kind.flag]
            if len(flagged) > 1:
                names = ", ".join(m.name for m in flagged)
                raise ConfigurationError(
                    f"more than one field mapping is flagged {kind.flag}: {names}"
                )
            if flagged:
                mapping = flagged[0]
                self._related[kind] = (mapping.first_column, mapping.name)
            else:
                self._related[kind] = (None, kind.default_field)
            logger.debug(f"Resolved {kind.value} relationship mapping: {self._related[kind]}")
        return self._related[kind]

    @property
    def related_parents_raw_mapping(self) -> Optional[str]:
        return self.related_mapping(RelationshipKind.PARENT)[0]

    @property
    def related_parents_parsed_mapping(self) -> str:
        return self.related_mapping(RelationshipKind.PARENT)[1]

    @property
    def related_children_raw_mapping(self) -> Optional[str]:
        return self.related_mapping(RelationshipKind.CHILD)[0]

    @property
    def related_children_parsed_mapping(self) -> str:
        return self.related_mapping(RelationshipKind.CHILD)[1]

    def generated_field_names(self) -> FrozenSet[str]:
        """Fields populated by the repository rather than copied from a column."""
        return frozenset(m.name for m in self._by_flag["generated"])

    @property
    def generated_metadata_mapping(self) -> str:
        return "generated"

    @property
    def source_identifier(self) -> str:
        """Semantic field holding a row's identifier."""
        flagged = self._by_flag["source_identifier"]
        return flagged[0].name if flagged else SOURCE_IDENTIFIER_FIELD

    @property
    def source_identifier_columns(self) -> List[str]:
        """Columns tried, in order, when reading a row's identifier."""
        columns: List[str] = []
        for mapping in self._by_flag["source_identifier"][:1]:
            columns.extend(mapping.from_ or [mapping.name])
        columns.append(SOURCE_IDENTIFIER_FIELD)
        return list(dict.fromkeys(columns))

    @property
    def work_identifier(self) -> str:
        """Column the repository stores a work's identifier in."""
        flagged = self._by_flag["source_identifier"]
        if flagged:
            return flagged[0].first_column or flagged[0].name
        return DEFAULT_WORK_IDENTIFIER
