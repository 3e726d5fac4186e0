"""
CLI entry point for tsgen (protoc plugin).

Usage:
    # protoc-gen-grpc-gateway-ts must be on PATH (pip install installs it)
    protoc --grpc-gateway-ts_out=gen/ --grpc-gateway-ts_opt=use_static_classes=false users/v1/user.proto

    # Replay a captured request while debugging:
    python3 -m tools.tsgen --request request.bin --parameter loglevel=debug,logtostderr=true
"""

import argparse
import sys

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from .generator import GenerationError, Generator
from .log import configure_logging
from .options import OptionsError, parse_parameter
from .registry import Registry

PROG = "protoc-gen-grpc-gateway-ts"


def main(argv=None, stdin=None, stdout=None) -> int:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="protoc plugin generating TypeScript grpc-gateway clients",
    )
    parser.add_argument("--request",
                        help="Read the CodeGeneratorRequest from this file instead of stdin")
    parser.add_argument("--parameter",
                        help="Use this parameter string instead of the request's")
    args = parser.parse_args(argv)

    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer

    if args.request:
        try:
            with open(args.request, "rb") as f:
                data = f.read()
        except OSError as e:
            print(f"{PROG}: cannot read request file {args.request}: {e}", file=sys.stderr)
            return 1
    else:
        data = stdin.read()

    try:
        request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    except DecodeError as e:
        print(f"{PROG}: cannot decode CodeGeneratorRequest: {e}", file=sys.stderr)
        return 1

    parameter = args.parameter if args.parameter is not None else request.parameter
    try:
        options = parse_parameter(parameter)
    except OptionsError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    configure_logging(level=options.loglevel, to_stderr=options.logtostderr)

    try:
        resp = Generator(Registry(options), options).generate(request)
    except GenerationError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    stdout.write(resp.SerializeToString(deterministic=True))
    stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
