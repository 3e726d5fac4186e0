"""
Registry: analyses a CodeGeneratorRequest into per-file models.

Every proto file in the request is analysed, including files that are only
present as imports; deciding which of them to emit is the generator's job.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from google.api import annotations_pb2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    MethodDescriptorProto,
    ServiceDescriptorProto,
)

from .log import get_logger
from .model import (
    Dependency,
    EnumModel,
    EnumValue,
    FieldModel,
    FileModel,
    MessageModel,
    MethodModel,
    Service,
)
from .options import GenerationOptions
from .types import (
    PATH_PARAM,
    lower_camel,
    module_identifier,
    output_file_name,
    relative_import,
    ts_type,
)

log = get_logger("registry")

_F = FieldDescriptorProto


class AnalysisError(Exception):
    """Raised when the descriptor set cannot be turned into file models."""
    pass


class Analyzer(Protocol):
    def analyse(self, request: plugin_pb2.CodeGeneratorRequest) -> List[FileModel]:
        ...


@dataclass
class _TypeInfo:
    file_name: str
    ts_name: str
    map_entry: Optional[DescriptorProto] = None


class Registry:
    """
    Descriptor analyzer backed by a fully-qualified type index.

    ``analyse()`` first indexes every message and enum of every file, then
    builds one ``FileModel`` per file in request order.
    """

    def __init__(self, options: GenerationOptions):
        self.options = options
        self._types: Dict[str, _TypeInfo] = {}

    # ── Top-level ────────────────────────────────────────────────────

    def analyse(self, request: plugin_pb2.CodeGeneratorRequest) -> List[FileModel]:
        self._types = {}
        for fd in request.proto_file:
            self._index_file(fd)
        return [self._analyse_file(fd) for fd in request.proto_file]

    # ── Type index ───────────────────────────────────────────────────

    def _index_file(self, fd: FileDescriptorProto):
        prefix = f".{fd.package}" if fd.package else ""
        for enum in fd.enum_type:
            self._types[f"{prefix}.{enum.name}"] = _TypeInfo(fd.name, enum.name)
        for msg in fd.message_type:
            self._index_message(fd.name, prefix, "", msg)

    def _index_message(self, file_name: str, prefix: str, ts_prefix: str,
                       msg: DescriptorProto):
        full_name = f"{prefix}.{msg.name}"
        ts_name = ts_prefix + msg.name
        map_entry = msg if msg.options.map_entry else None
        self._types[full_name] = _TypeInfo(file_name, ts_name, map_entry)
        for enum in msg.enum_type:
            self._types[f"{full_name}.{enum.name}"] = _TypeInfo(file_name, ts_name + enum.name)
        for nested in msg.nested_type:
            self._index_message(file_name, full_name, ts_name, nested)

    def _lookup(self, type_name: str, context: str) -> _TypeInfo:
        info = self._types.get(type_name)
        if info is None:
            raise AnalysisError(f"{context}: unknown type {type_name!r}")
        return info

    # ── Files ────────────────────────────────────────────────────────

    def _analyse_file(self, fd: FileDescriptorProto) -> FileModel:
        out_name = output_file_name(fd.name)
        f = FileModel(
            name=fd.name,
            output_file_name=out_name,
            package=fd.package,
            fetch_module_import=relative_import(out_name, self.options.fetch_module_path()),
        )
        deps: Dict[str, Dependency] = {}
        prefix = f".{fd.package}" if fd.package else ""

        for enum in fd.enum_type:
            f.enums.append(_enum_model(enum.name, f"{prefix}.{enum.name}", enum))
        for msg in fd.message_type:
            self._walk_message(fd, prefix, "", msg, f, deps)
        for svc in fd.service:
            f.services.append(self._service(fd, svc, deps))

        f.dependencies = list(deps.values())
        log.debug("analysed %s: %d enums, %d messages, %d services",
                  fd.name, len(f.enums), len(f.messages), len(f.services))
        return f

    def _walk_message(self, fd, prefix, ts_prefix, msg: DescriptorProto,
                      f: FileModel, deps: Dict[str, Dependency]):
        if msg.options.map_entry:
            return
        full_name = f"{prefix}.{msg.name}"
        ts_name = ts_prefix + msg.name

        fields = []
        for fld in msg.field:
            context = f"{fd.name}: field {full_name[1:]}.{fld.name}"
            fields.append(FieldModel(name=self._field_name(fld),
                                     ts_type=self._field_type(fd.name, fld, deps, context)))
        f.messages.append(MessageModel(name=ts_name, full_name=full_name, fields=fields))

        for enum in msg.enum_type:
            f.enums.append(_enum_model(ts_name + enum.name, f"{full_name}.{enum.name}", enum))
        for nested in msg.nested_type:
            self._walk_message(fd, full_name, ts_name, nested, f, deps)

    # ── Fields ───────────────────────────────────────────────────────

    def _field_name(self, fld: FieldDescriptorProto) -> str:
        if self.options.use_proto_names:
            return fld.name
        return fld.json_name or lower_camel(fld.name)

    def _field_type(self, file_name: str, fld: FieldDescriptorProto,
                    deps: Dict[str, Dependency], context: str) -> str:
        if fld.type in (_F.TYPE_MESSAGE, _F.TYPE_ENUM):
            info = self._lookup(fld.type_name, context)
            if info.map_entry is not None:
                key_fld, value_fld = info.map_entry.field[0], info.map_entry.field[1]
                key = self._field_type(file_name, key_fld, deps, context)
                value = self._field_type(file_name, value_fld, deps, context)
                return f"{{[key: {key}]: {value}}}"
            base = self._type_ref(file_name, info, deps)
        elif fld.type == _F.TYPE_GROUP:
            raise AnalysisError(f"{context}: groups are not supported")
        else:
            base = ts_type(fld.type)

        if fld.label == _F.LABEL_REPEATED:
            return base + "[]"
        return base

    def _type_ref(self, file_name: str, info: _TypeInfo,
                  deps: Dict[str, Dependency]) -> str:
        """Local name for types in the same file, Alias.Name otherwise."""
        if info.file_name == file_name:
            return info.ts_name
        dep = deps.get(info.file_name)
        if dep is None:
            dep = Dependency(
                module_identifier=module_identifier(info.file_name),
                source_file=info.file_name,
                import_path=relative_import(output_file_name(file_name),
                                            output_file_name(info.file_name)),
            )
            deps[info.file_name] = dep
        return f"{dep.module_identifier}.{info.ts_name}"

    # ── Services ─────────────────────────────────────────────────────

    def _service(self, fd: FileDescriptorProto, svc: ServiceDescriptorProto,
                 deps: Dict[str, Dependency]) -> Service:
        full_name = f"{fd.package}.{svc.name}" if fd.package else svc.name
        methods = []
        for m in svc.method:
            if m.client_streaming:
                log.warning("%s.%s: client streaming is not supported by "
                            "grpc-gateway, skipping", full_name, m.name)
                continue
            methods.append(self._method(fd, full_name, m, deps))
        return Service(name=svc.name, full_name=full_name, methods=methods)

    def _method(self, fd: FileDescriptorProto, service_full_name: str,
                m: MethodDescriptorProto, deps: Dict[str, Dependency]) -> MethodModel:
        context = f"{fd.name}: method {service_full_name}.{m.name}"
        input_type = self._type_ref(fd.name, self._lookup(m.input_type, context), deps)
        output_type = self._type_ref(fd.name, self._lookup(m.output_type, context), deps)

        if m.options.HasExtension(annotations_pb2.http):
            rule = m.options.Extensions[annotations_pb2.http]
            pattern = rule.WhichOneof("pattern")
            if pattern is None:
                raise AnalysisError(f"{context}: google.api.http rule has no HTTP verb")
            if pattern == "custom":
                http_method, path = rule.custom.kind.upper(), rule.custom.path
            else:
                http_method, path = pattern.upper(), getattr(rule, pattern)
            body = rule.body
        else:
            http_method, path, body = "POST", f"/{service_full_name}/{m.name}", "*"

        if not path.startswith("/"):
            raise AnalysisError(f"{context}: HTTP path {path!r} must start with '/'")

        return MethodModel(
            name=m.name,
            input_type=input_type,
            output_type=output_type,
            http_method=http_method,
            path=path,
            body=body,
            path_params=PATH_PARAM.findall(path),
            server_streaming=m.server_streaming,
        )


def _enum_model(ts_name: str, full_name: str, enum) -> EnumModel:
    return EnumModel(name=ts_name, full_name=full_name,
                     values=[EnumValue(v.name, v.number) for v in enum.value])
