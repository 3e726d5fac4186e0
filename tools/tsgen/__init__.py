"""
tsgen: protoc plugin that generates TypeScript grpc-gateway clients.

Reads a CodeGeneratorRequest, analyses the descriptors into per-file models
and renders one .pb.ts file per requested proto, plus a shared fetch module
when any generated service needs it.
"""
