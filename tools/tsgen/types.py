"""
Type system: proto scalar-to-TypeScript type mapping and naming helpers.
"""

import posixpath
import re

from google.protobuf.descriptor_pb2 import FieldDescriptorProto

_F = FieldDescriptorProto

# Proto scalar type → TypeScript type. 64-bit integers are strings in
# grpc-gateway's JSON encoding.
TYPE_MAP = {
    _F.TYPE_DOUBLE:   "number",
    _F.TYPE_FLOAT:    "number",
    _F.TYPE_INT32:    "number",
    _F.TYPE_UINT32:   "number",
    _F.TYPE_SINT32:   "number",
    _F.TYPE_FIXED32:  "number",
    _F.TYPE_SFIXED32: "number",
    _F.TYPE_INT64:    "string",
    _F.TYPE_UINT64:   "string",
    _F.TYPE_SINT64:   "string",
    _F.TYPE_FIXED64:  "string",
    _F.TYPE_SFIXED64: "string",
    _F.TYPE_BOOL:     "boolean",
    _F.TYPE_STRING:   "string",
    _F.TYPE_BYTES:    "Uint8Array",
}


def ts_type(proto_type: int) -> str:
    """Map a scalar FieldDescriptorProto type to its TypeScript equivalent."""
    return TYPE_MAP[proto_type]


def output_file_name(proto_name: str) -> str:
    """users/v1/user.proto → users/v1/user.pb.ts"""
    if proto_name.endswith(".proto"):
        proto_name = proto_name[:-len(".proto")]
    return proto_name + ".pb.ts"


def module_identifier(proto_name: str) -> str:
    """Import alias for a proto file, e.g. google/protobuf/empty.proto → GoogleProtobufEmpty."""
    if proto_name.endswith(".proto"):
        proto_name = proto_name[:-len(".proto")]
    parts = re.split(r"[^0-9A-Za-z]+", proto_name)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def relative_import(from_file: str, to_file: str) -> str:
    """
    Relative TypeScript import path from one generated file to another.

    Both arguments are output paths (with .ts); the result drops the
    extension and always starts with "." so TypeScript treats it as local.
    """
    target = to_file[:-len(".ts")] if to_file.endswith(".ts") else to_file
    rel = posixpath.relpath(target, posixpath.dirname(from_file) or ".")
    if not rel.startswith("."):
        rel = "./" + rel
    return rel


def lower_camel(name: str) -> str:
    """display_name → displayName (protoc's json_name rule)."""
    out = []
    upper_next = False
    for ch in name:
        if ch == "_":
            upper_next = True
            continue
        out.append(ch.upper() if upper_next else ch)
        upper_next = False
    return "".join(out)


# Path template parameter: {id} or {name=shelves/*}
PATH_PARAM = re.compile(r"\{([^}=]+)(?:=[^}]*)?\}")
