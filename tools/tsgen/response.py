"""
Response assembly: rendered outputs → CodeGeneratorResponse.
"""

from dataclasses import dataclass
from typing import Iterable

from google.protobuf.compiler import plugin_pb2


@dataclass(frozen=True)
class OutputFile:
    name: str
    content: str


def assemble(outputs: Iterable[OutputFile]) -> plugin_pb2.CodeGeneratorResponse:
    """Collect outputs in order. Whole-file output only: no insertion points."""
    resp = plugin_pb2.CodeGeneratorResponse()
    for out in outputs:
        resp.file.add(name=out.name, content=out.content)
    return resp
