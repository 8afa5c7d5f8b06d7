"""Field mapping models for importer and exporter configuration."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union
from enum import Enum
import json


class RelationshipKind(str, Enum):
    """Kinds of relationship mappings."""
    PARENT = "parent"
    CHILD = "child"

    @property
    def flag(self) -> str:
        """Name of the mapping flag that marks this relationship."""
        if self == RelationshipKind.PARENT:
            return "related_parents_field_mapping"
        return "related_children_field_mapping"

    @property
    def default_field(self) -> str:
        """Parsed field name used when no mapping is flagged."""
        if self == RelationshipKind.PARENT:
            return "parents"
        return "children"


@dataclass(frozen=True)
class FieldMapping:
    """Mapping of one or more source columns to a semantic field."""
    name: str
    from_: List[str] = field(default_factory=list)
    source_identifier: bool = False
    generated: bool = False
    related_parents_field_mapping: bool = False
    related_children_field_mapping: bool = False
    split: Optional[Union[str, bool]] = None
    object: Optional[str] = None  # Groups columns under one repeated sub-object
    nested_type: Optional[str] = None  # "Array" for repeatable values inside an object

    def has_flag(self, flag: str) -> bool:
        """Check whether a boolean flag is set on this mapping."""
        return bool(getattr(self, flag, False))

    @property
    def first_column(self) -> Optional[str]:
        """First source column, if any."""
        return self.from_[0] if self.from_ else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result: Dict[str, Any] = {"from": list(self.from_)}
        for flag in (
            "source_identifier",
            "generated",
            "related_parents_field_mapping",
            "related_children_field_mapping",
        ):
            if getattr(self, flag):
                result[flag] = True
        if self.split is not None:
            result["split"] = self.split
        if self.object:
            result["object"] = self.object
        if self.nested_type:
            result["nested_type"] = self.nested_type
        return result

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "FieldMapping":
        """Create from dictionary representation."""
        data = {str(k): v for k, v in (data or {}).items()}
        columns = data.get("from", [])
        if isinstance(columns, str):
            columns = [columns]

        return cls(
            name=name,
            from_=[str(c) for c in columns],
            source_identifier=bool(data.get("source_identifier", False)),
            generated=bool(data.get("generated", False)),
            related_parents_field_mapping=bool(data.get("related_parents_field_mapping", False)),
            related_children_field_mapping=bool(data.get("related_children_field_mapping", False)),
            split=data.get("split"),
            object=data.get("object"),
            nested_type=data.get("nested_type"),
        )


@dataclass
class FieldMappingConfig:
    """Complete field mapping configuration for one importer or exporter."""
    mappings: Dict[str, FieldMapping] = field(default_factory=dict)

    def __iter__(self) -> Iterator[FieldMapping]:
        return iter(self.mappings.values())

    def __len__(self) -> int:
        return len(self.mappings)

    def __contains__(self, name: object) -> bool:
        return name in self.mappings

    def get(self, name: str) -> Optional[FieldMapping]:
        """Get a mapping by semantic field name."""
        return self.mappings.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {name: m.to_dict() for name, m in self.mappings.items()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FieldMappingConfig":
        """Create from dictionary representation."""
        mappings = {}
        for name, mapping_data in (data or {}).items():
            mappings[str(name)] = FieldMapping.from_dict(str(name), mapping_data)
        return cls(mappings=mappings)

    @classmethod
    def from_json_file(cls, file_path: str) -> "FieldMappingConfig":
        """Load mapping from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
