# File: erimport/models.py
"""
ERImport - Core Data Models
=============================
Pydantic V2 models representing the entity-relationship design model
produced by the importer, plus the options that steer it.  These models
form the single source of truth for the entire pipeline:
Document Parsing → Classification → Field/Relation Inference → Export.

Python attributes are snake_case; serialised keys are camelCase
(``model_dump(by_alias=True)`` / ``ImportResult.to_dict()``).

Result models are frozen: once the importer hands an ``ImportResult`` back,
nothing mutates it.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Set, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.models")

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class CanonicalType(str, Enum):
    """Field types an imported entity may carry."""

    STRING = "String"
    INTEGER = "Integer"
    LONG = "Long"
    FLOAT = "Float"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    LOCAL_DATE = "LocalDate"
    LOCAL_DATE_TIME = "LocalDateTime"
    LOCAL_TIME = "LocalTime"
    UUID = "UUID"
    BYTE_ARRAY = "byte[]"


class Cardinality(str, Enum):
    """Relation cardinalities."""

    ONE_TO_ONE = "OneToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_ONE = "ManyToOne"
    MANY_TO_MANY = "ManyToMany"


class FetchType(str, Enum):
    """ORM loading strategy for a relation."""

    LAZY = "LAZY"
    EAGER = "EAGER"


class CascadeType(str, Enum):
    """Cascade operations a relation may propagate."""

    ALL = "ALL"
    PERSIST = "PERSIST"
    MERGE = "MERGE"
    REMOVE = "REMOVE"
    REFRESH = "REFRESH"
    DETACH = "DETACH"


class ReferentialAction(str, Enum):
    """Foreign-key ON DELETE / ON UPDATE behaviour."""

    CASCADE = "CASCADE"
    SET_NULL = "SET_NULL"
    SET_DEFAULT = "SET_DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO_ACTION"


class DocumentFormat(str, Enum):
    """Serialisation formats an API document may arrive in."""

    JSON = "json"
    YAML = "yaml"


class HttpMethod(str, Enum):
    """HTTP methods collected from the ``paths`` section."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_RESULT_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    alias_generator=to_camel,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Validation rules (tagged union on ``type``)
# ---------------------------------------------------------------------------


class NotNullRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["NotNull"] = "NotNull"


class NotBlankRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["NotBlank"] = "NotBlank"


class SizeRule(BaseModel):
    """String length bounds; unspecified bounds default to 0 and 255."""

    model_config = _RESULT_CONFIG

    type: Literal["Size"] = "Size"
    min: int = Field(default=0, ge=0, description="Minimum length.")
    max: int = Field(default=255, ge=0, description="Maximum length.")


class EmailRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["Email"] = "Email"


class PatternRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["Pattern"] = "Pattern"
    regex: str = Field(..., description="Raw, unescaped regular expression.")


class MinRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["Min"] = "Min"
    value: Union[int, float] = Field(..., description="Inclusive lower bound.")


class MaxRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["Max"] = "Max"
    value: Union[int, float] = Field(..., description="Inclusive upper bound.")


class PositiveOrZeroRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["PositiveOrZero"] = "PositiveOrZero"


class PositiveRule(BaseModel):
    model_config = _RESULT_CONFIG

    type: Literal["Positive"] = "Positive"


ValidationRule = Annotated[
    Union[
        NotNullRule,
        NotBlankRule,
        SizeRule,
        EmailRule,
        PatternRule,
        MinRule,
        MaxRule,
        PositiveOrZeroRule,
        PositiveRule,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Entities & fields
# ---------------------------------------------------------------------------


class Position(BaseModel):
    """Canvas coordinates for an entity."""

    model_config = _RESULT_CONFIG

    x: int = Field(..., description="Horizontal offset.")
    y: int = Field(..., description="Vertical offset.")


class EntityConfig(BaseModel):
    """Per-entity downstream generation switches."""

    model_config = _RESULT_CONFIG

    generate_controller: bool = Field(default=True)
    generate_service: bool = Field(default=True)
    enable_caching: bool = Field(default=False)


class FieldInfo(BaseModel):
    """
    A single scalar attribute of an entity.

    Reference-typed properties never become fields; they become relations.
    """

    model_config = _RESULT_CONFIG

    id: str = Field(..., min_length=1, description="Opaque field identifier.")
    name: str = Field(..., min_length=1, description="camelCase field name.")
    column_name: str = Field(..., min_length=1, description="snake_case column name.")
    type: CanonicalType = Field(..., description="Canonical field type.")
    nullable: bool = Field(default=True, description="Whether the column allows NULL.")
    unique: bool = Field(default=False, description="Has a UNIQUE constraint?")
    validations: List[ValidationRule] = Field(
        default_factory=list, description="Derived validation rules, in order."
    )
    description: Optional[str] = Field(default=None, description="Field documentation.")
    default_value: Optional[str] = Field(
        default=None, description="String form of the schema default."
    )

    def has_rule(self, rule_type: str) -> bool:
        """True when a validation rule of *rule_type* is present."""
        return any(rule.type == rule_type for rule in self.validations)

    def __repr__(self) -> str:
        flag: str = "NULL" if self.nullable else "NOT NULL"
        return f"<Field {self.name}: {self.type} {flag}>"


class EntityInfo(BaseModel):
    """
    A modeled domain table.

    Invariant: every entity carries at least one field (an ``id`` field is
    synthesised when the source schema has none).
    """

    model_config = _RESULT_CONFIG

    id: str = Field(..., min_length=1, description="Opaque entity identifier.")
    name: str = Field(..., min_length=1, description="PascalCase entity name.")
    table_name: str = Field(..., min_length=1, description="snake_case table name.")
    description: Optional[str] = Field(default=None, description="Entity documentation.")
    position: Position = Field(..., description="Canvas position.")
    fields: List[FieldInfo] = Field(..., min_length=1, description="Ordered fields.")
    config: EntityConfig = Field(default_factory=EntityConfig)

    @model_validator(mode="after")
    def _validate_unique_field_names(self) -> "EntityInfo":
        names: List[str] = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            dupes: List[str] = [n for n in names if names.count(n) > 1]
            raise ValueError(
                f"Entity '{self.name}' has duplicate field names: {sorted(set(dupes))}"
            )
        return self

    def get_field(self, name: str) -> Optional[FieldInfo]:
        """Field lookup by name."""
        for field_info in self.fields:
            if field_info.name == name:
                return field_info
        return None

    def __repr__(self) -> str:
        return f"<Entity {self.name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


class ForeignKeyInfo(BaseModel):
    """Foreign-key column synthesised for a relation."""

    model_config = _RESULT_CONFIG

    column_name: str = Field(..., min_length=1, description="FK column name.")
    nullable: bool = Field(default=True)
    on_delete: ReferentialAction = Field(default=ReferentialAction.NO_ACTION)
    on_update: ReferentialAction = Field(default=ReferentialAction.NO_ACTION)


class JoinTableInfo(BaseModel):
    """Association table synthesised for a many-to-many relation."""

    model_config = _RESULT_CONFIG

    name: str = Field(..., min_length=1, description="Join table name.")
    join_column: str = Field(..., min_length=1, description="Owning-side column.")
    inverse_join_column: str = Field(..., min_length=1, description="Inverse-side column.")


class RelationInfo(BaseModel):
    """An inferred association between two entities."""

    model_config = _RESULT_CONFIG

    id: str = Field(..., min_length=1, description="Opaque relation identifier.")
    type: Cardinality = Field(..., description="Inferred cardinality.")
    source_entity_id: str = Field(..., min_length=1)
    target_entity_id: str = Field(..., min_length=1)
    source_field_name: str = Field(..., min_length=1)
    target_field_name: Optional[str] = Field(default=None)
    bidirectional: bool = Field(default=False)
    fetch_type: FetchType = Field(default=FetchType.LAZY)
    cascade: List[CascadeType] = Field(default_factory=list)
    foreign_key: ForeignKeyInfo = Field(...)
    join_table: Optional[JoinTableInfo] = Field(default=None)

    @model_validator(mode="after")
    def _validate_join_table(self) -> "RelationInfo":
        is_many_to_many: bool = self.type == Cardinality.MANY_TO_MANY.value
        if is_many_to_many and self.join_table is None:
            raise ValueError("ManyToMany relations require a join table.")
        if not is_many_to_many and self.join_table is not None:
            raise ValueError(f"{self.type} relations must not define a join table.")
        return self

    def __repr__(self) -> str:
        return (
            f"<Relation {self.source_field_name} ({self.type}) "
            f"{self.source_entity_id} → {self.target_entity_id}>"
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


class EndpointInfo(BaseModel):
    """One HTTP operation listed under ``paths``."""

    model_config = _RESULT_CONFIG

    path: str = Field(..., min_length=1)
    method: HttpMethod = Field(...)
    operation_id: Optional[str] = Field(default=None)
    summary: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list)
    entity_name: Optional[str] = Field(default=None)

    def __repr__(self) -> str:
        return f"<Endpoint {self.method} {self.path}>"


# ---------------------------------------------------------------------------
# Import result — top-level container
# ---------------------------------------------------------------------------


class ImportResult(BaseModel):
    """
    The root model: everything one import call produces.

    Invariants: entity ids are unique, and every relation endpoint references
    an entity present in ``entities``.
    """

    model_config = _RESULT_CONFIG

    entities: List[EntityInfo] = Field(default_factory=list)
    relations: List[RelationInfo] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    project_name: str = Field(default="ApiProject", min_length=1)
    version: str = Field(default="1.0.0", min_length=1)
    description: Optional[str] = Field(default=None)
    endpoints: List[EndpointInfo] = Field(default_factory=list)
    source_format: DocumentFormat = Field(default=DocumentFormat.JSON)

    @model_validator(mode="after")
    def _validate_unique_entity_ids(self) -> "ImportResult":
        ids: List[str] = [e.id for e in self.entities]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate entity ids in import result.")
        return self

    @model_validator(mode="after")
    def _validate_relation_endpoints(self) -> "ImportResult":
        entity_ids: Set[str] = {e.id for e in self.entities}
        for relation in self.relations:
            for endpoint in (relation.source_entity_id, relation.target_entity_id):
                if endpoint not in entity_ids:
                    raise ValueError(
                        f"Relation '{relation.source_field_name}' references "
                        f"entity id '{endpoint}' which is not in the result."
                    )
        return self

    def get_entity(self, name: str) -> Optional[EntityInfo]:
        """Entity lookup by name."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def get_entity_by_id(self, entity_id: str) -> Optional[EntityInfo]:
        """Entity lookup by id."""
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    @property
    def entity_count(self) -> int:
        return len(self.entities)

    @property
    def relation_count(self) -> int:
        return len(self.relations)

    @property
    def total_fields(self) -> int:
        return sum(len(e.fields) for e in self.entities)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase, JSON-compatible representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def __repr__(self) -> str:
        return (
            f"<ImportResult {self.entity_count} entities, "
            f"{self.relation_count} relations, "
            f"{len(self.warnings)} warnings>"
        )


# ---------------------------------------------------------------------------
# Strict validation report
# ---------------------------------------------------------------------------


class ValidationMessage(BaseModel):
    """A single finding of the strict validator."""

    model_config = _RESULT_CONFIG

    message: str = Field(..., min_length=1)
    code: Optional[str] = Field(default=None)
    path: Optional[str] = Field(default=None)


class ValidationReport(BaseModel):
    """Outcome of ``validate_openapi``: no model is built."""

    model_config = _RESULT_CONFIG

    valid: bool = Field(...)
    errors: List[ValidationMessage] = Field(default_factory=list)
    warnings: List[ValidationMessage] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Import options (configuration)
# ---------------------------------------------------------------------------


class ImportOptions(BaseModel):
    """Settings that steer a single import."""

    model_config = _SHARED_CONFIG

    include_descriptions: bool = Field(
        default=True, description="Copy schema/property descriptions."
    )
    include_defaults: bool = Field(
        default=True, description="Copy property defaults as defaultValue."
    )
    start_x: int = Field(default=100, description="Layout origin X.")
    start_y: int = Field(default=100, description="Layout origin Y.")
    spacing_x: int = Field(default=300, ge=1, description="Horizontal grid spacing.")
    spacing_y: int = Field(default=250, ge=1, description="Vertical grid spacing.")
    include_schemas: List[str] = Field(
        default_factory=list,
        description="Schema names that bypass the non-entity name filter.",
    )
    exclude_patterns: List[str] = Field(
        default_factory=list,
        description="Extra case-insensitive regexes marking non-entity schema names.",
    )

    @field_validator("exclude_patterns")
    @classmethod
    def _patterns_compile(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Invalid exclude pattern '{pattern}': {exc}") from exc
        return v

    @field_validator("include_schemas")
    @classmethod
    def _unique_includes(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            dupes: List[str] = [x for x in v if v.count(x) > 1]
            raise ValueError(f"Duplicate include_schemas entries: {sorted(set(dupes))}")
        return v


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CanonicalType",
    "Cardinality",
    "FetchType",
    "CascadeType",
    "ReferentialAction",
    "DocumentFormat",
    "HttpMethod",
    "NotNullRule",
    "NotBlankRule",
    "SizeRule",
    "EmailRule",
    "PatternRule",
    "MinRule",
    "MaxRule",
    "PositiveOrZeroRule",
    "PositiveRule",
    "ValidationRule",
    "Position",
    "EntityConfig",
    "FieldInfo",
    "EntityInfo",
    "ForeignKeyInfo",
    "JoinTableInfo",
    "RelationInfo",
    "EndpointInfo",
    "ImportResult",
    "ValidationMessage",
    "ValidationReport",
    "ImportOptions",
]

logger.debug("erimport.models loaded — %d public symbols.", len(__all__))
