"""Shared fixtures for tsgen tests."""

import pytest
import sys
import os

# Add the project root to sys.path so 'tools.tsgen' is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from google.api import annotations_pb2
from google.protobuf import descriptor_pb2, text_format
from google.protobuf.compiler import plugin_pb2


COMMON_PROTO = """\
name: "common/v1/types.proto"
package: "common.v1"
message_type {
  name: "Timestamp"
  field { name: "seconds" number: 1 label: LABEL_OPTIONAL type: TYPE_INT64 json_name: "seconds" }
  field { name: "nanos" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 json_name: "nanos" }
}
enum_type {
  name: "Visibility"
  value { name: "VISIBILITY_UNSPECIFIED" number: 0 }
  value { name: "PUBLIC" number: 1 }
  value { name: "PRIVATE" number: 2 }
}
syntax: "proto3"
"""


USER_PROTO = """\
name: "users/v1/user.proto"
package: "users.v1"
dependency: "common/v1/types.proto"
message_type {
  name: "User"
  field { name: "id" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "id" }
  field { name: "display_name" number: 2 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "displayName" }
  field { name: "status" number: 3 label: LABEL_OPTIONAL type: TYPE_ENUM type_name: ".users.v1.User.Status" json_name: "status" }
  field { name: "created" number: 4 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".common.v1.Timestamp" json_name: "created" }
  field { name: "labels" number: 5 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".users.v1.User.LabelsEntry" json_name: "labels" }
  field { name: "tags" number: 6 label: LABEL_REPEATED type: TYPE_STRING json_name: "tags" }
  field { name: "visibility" number: 7 label: LABEL_OPTIONAL type: TYPE_ENUM type_name: ".common.v1.Visibility" json_name: "visibility" }
  field { name: "avatar" number: 8 label: LABEL_OPTIONAL type: TYPE_BYTES json_name: "avatar" }
  nested_type {
    name: "LabelsEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "key" }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_INT64 json_name: "value" }
    options { map_entry: true }
  }
  enum_type {
    name: "Status"
    value { name: "STATUS_UNSPECIFIED" number: 0 }
    value { name: "ACTIVE" number: 1 }
    value { name: "SUSPENDED" number: 2 }
  }
}
message_type {
  name: "GetUserRequest"
  field { name: "id" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "id" }
}
message_type {
  name: "ListUsersRequest"
  field { name: "page_size" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 json_name: "pageSize" }
  field { name: "filter" number: 2 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "filter" }
}
message_type {
  name: "ListUsersResponse"
  field { name: "users" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".users.v1.User" json_name: "users" }
}
message_type {
  name: "UpdateUserRequest"
  field { name: "user" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".users.v1.User" json_name: "user" }
}
message_type {
  name: "WatchUsersRequest"
}
message_type {
  name: "UploadChunk"
  field { name: "data" number: 1 label: LABEL_OPTIONAL type: TYPE_BYTES json_name: "data" }
}
service {
  name: "UserService"
  method { name: "GetUser" input_type: ".users.v1.GetUserRequest" output_type: ".users.v1.User" }
  method { name: "ListUsers" input_type: ".users.v1.ListUsersRequest" output_type: ".users.v1.ListUsersResponse" }
  method { name: "UpdateUser" input_type: ".users.v1.UpdateUserRequest" output_type: ".users.v1.User" }
  method { name: "DeleteUser" input_type: ".users.v1.GetUserRequest" output_type: ".users.v1.User" }
  method { name: "WatchUsers" input_type: ".users.v1.WatchUsersRequest" output_type: ".users.v1.User" server_streaming: true }
  method { name: "UploadAvatar" input_type: ".users.v1.UploadChunk" output_type: ".users.v1.User" client_streaming: true }
}
syntax: "proto3"
"""


HEALTH_PROTO = """\
name: "health.proto"
package: "health.v1"
message_type {
  name: "CheckRequest"
  field { name: "service" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING json_name: "service" }
}
message_type {
  name: "CheckResponse"
  field { name: "status" number: 1 label: LABEL_OPTIONAL type: TYPE_ENUM type_name: ".health.v1.CheckResponse.ServingStatus" json_name: "status" }
  enum_type {
    name: "ServingStatus"
    value { name: "UNKNOWN" number: 0 }
    value { name: "SERVING" number: 1 }
  }
}
service {
  name: "Health"
  method { name: "Check" input_type: ".health.v1.CheckRequest" output_type: ".health.v1.CheckResponse" }
}
syntax: "proto3"
"""


EMPTY_PROTO = """\
name: "empty/v1/nothing.proto"
package: "empty.v1"
syntax: "proto3"
"""


# (method, verb, path, body) bindings applied to UserService.
USER_HTTP_RULES = [
    ("GetUser",    "get",    "/v1/users/{id}",      ""),
    ("ListUsers",  "get",    "/v1/users",           ""),
    ("UpdateUser", "patch",  "/v1/users/{user.id}", "user"),
    ("DeleteUser", "delete", "/v1/users/{id}",      ""),
]


def parse_file(text):
    """Parse a text-format FileDescriptorProto."""
    return text_format.Parse(text, descriptor_pb2.FileDescriptorProto())


def find_method(fd, name):
    for svc in fd.service:
        for m in svc.method:
            if m.name == name:
                return m
    raise KeyError(name)


def _user_file():
    fd = parse_file(USER_PROTO)
    for name, verb, path, body in USER_HTTP_RULES:
        rule = find_method(fd, name).options.Extensions[annotations_pb2.http]
        setattr(rule, verb, path)
        if body:
            rule.body = body
    return fd


@pytest.fixture
def common_fd():
    return parse_file(COMMON_PROTO)


@pytest.fixture
def user_fd():
    """users/v1/user.proto with google.api.http bindings attached."""
    return _user_file()


@pytest.fixture
def health_fd():
    return parse_file(HEALTH_PROTO)


@pytest.fixture
def empty_fd():
    return parse_file(EMPTY_PROTO)


@pytest.fixture
def make_request():
    """Build a CodeGeneratorRequest from descriptors and the names to generate."""
    def _make(files, to_generate, parameter=""):
        req = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
        req.proto_file.extend(files)
        req.file_to_generate.extend(to_generate)
        return req
    return _make
