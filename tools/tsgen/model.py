"""
Model: analysed, per-file view of the proto descriptors consumed by the
templates.

Produced once by the registry; the generator and templates only read it.
"""

import enum
from dataclasses import dataclass, field
from typing import List


# ── Types ────────────────────────────────────────────────────────────

@dataclass
class EnumValue:
    name: str
    number: int


@dataclass
class EnumModel:
    name: str          # TypeScript name, parents concatenated
    full_name: str     # .pkg.Outer.Inner
    values: List[EnumValue]


@dataclass
class FieldModel:
    name: str          # name as emitted (json_name or proto name)
    ts_type: str       # e.g. "string", "UserStatus[]", "{[key: string]: number}"


@dataclass
class MessageModel:
    name: str
    full_name: str
    fields: List[FieldModel]


# ── Services ─────────────────────────────────────────────────────────

@dataclass
class MethodModel:
    name: str
    input_type: str
    output_type: str
    http_method: str               # "GET", "POST", ...
    path: str                      # "/v1/users/{id}"
    body: str                      # "", "*" or a field name
    path_params: List[str] = field(default_factory=list)
    server_streaming: bool = False


@dataclass
class Service:
    name: str
    full_name: str
    methods: List[MethodModel]


class ServiceSet(list):
    """Ordered services declared in one file."""

    def needs_fetch_module(self) -> bool:
        """True if any service has a method that calls into the fetch module."""
        return any(service.methods for service in self)


# ── Files ────────────────────────────────────────────────────────────

class FileContent(enum.Enum):
    EMPTY = "empty"
    HAS_CONTENT = "has_content"


@dataclass
class Dependency:
    module_identifier: str   # import alias, e.g. "CommonV1Types"
    source_file: str         # common/v1/types.proto
    import_path: str         # ../../common/v1/types.pb


@dataclass
class FileModel:
    name: str
    output_file_name: str
    package: str = ""
    enums: List[EnumModel] = field(default_factory=list)
    messages: List[MessageModel] = field(default_factory=list)
    services: ServiceSet = field(default_factory=ServiceSet)
    dependencies: List[Dependency] = field(default_factory=list)
    fetch_module_import: str = "./fetch.pb"

    @property
    def content_kind(self) -> FileContent:
        if self.enums or self.messages or self.services:
            return FileContent.HAS_CONTENT
        return FileContent.EMPTY
