"""
Generator: drives one plugin invocation from request to response.

    analyse → filter by file_to_generate → render each file → fetch module
"""

from typing import Callable, List

from google.protobuf.compiler import plugin_pb2
from jinja2 import TemplateError

from .log import get_logger
from .model import FileContent
from .options import GenerationOptions
from .registry import AnalysisError, Analyzer
from .response import OutputFile, assemble
from .templates import EMPTY_FILE_CONTENT, RenderContext, TemplateProvider

log = get_logger("generator")

# Template globals such as render_url raise plain Python errors.
_RENDER_ERRORS = (TemplateError, ValueError, TypeError)


class GenerationError(Exception):
    """Raised when an invocation fails; no partial response is produced."""
    pass


class Generator:
    """
    TypeScript grpc-gateway client generator.

    ``analyzer`` turns the request into file models; ``template_provider``
    is called once per ``generate()`` with the options and must return a
    ``TemplateProvider``-compatible object.
    """

    def __init__(self, analyzer: Analyzer, options: GenerationOptions,
                 template_provider: Callable[[GenerationOptions], TemplateProvider] = TemplateProvider):
        self.analyzer = analyzer
        self.options = options
        self.template_provider = template_provider

    def generate(self, request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
        try:
            files = self.analyzer.analyse(request)
        except AnalysisError as e:
            raise GenerationError(f"error analysing proto files: {e}") from e

        try:
            templates = self.template_provider(self.options)
        except TemplateError as e:
            raise GenerationError(f"error loading templates: {e}") from e

        to_generate = set(request.file_to_generate)
        log.debug("files to generate %s", list(request.file_to_generate))

        outputs: List[OutputFile] = []
        needs_fetch_module = False
        for f in files:
            if f.name not in to_generate:
                log.debug("file %s is not the file to generate, skipping", f.name)
                continue

            log.debug("generating file for %s", f.output_file_name)
            outputs.append(self._generate_file(templates.context(f), templates))
            needs_fetch_module = needs_fetch_module or f.services.needs_fetch_module()

        if needs_fetch_module:
            log.debug("generating fetch module")
            outputs.append(self._generate_fetch_module(templates))

        return assemble(outputs)

    def _generate_file(self, ctx: RenderContext, templates: TemplateProvider) -> OutputFile:
        f = ctx.file
        if f.content_kind is FileContent.EMPTY:
            content = EMPTY_FILE_CONTENT
        else:
            try:
                content = templates.render_file(ctx)
            except _RENDER_ERRORS as e:
                raise GenerationError(f"error generating ts file for {f.name}: {e}") from e

        return OutputFile(name=f.output_file_name, content=content.strip())

    def _generate_fetch_module(self, templates: TemplateProvider) -> OutputFile:
        file_name = self.options.fetch_module_path()
        try:
            content = templates.render_fetch_module(templates.context())
        except _RENDER_ERRORS as e:
            raise GenerationError(f"error generating fetch module at {file_name}: {e}") from e

        return OutputFile(name=file_name, content=content.strip())
