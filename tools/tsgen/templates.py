"""
Templates: Jinja2 sources for the per-file client and the shared fetch
module, plus the helpers they call.

Templates run with StrictUndefined, so a reference to a missing model
attribute fails the render instead of emitting an empty string.
"""

from dataclasses import dataclass
from typing import Optional

from jinja2 import Environment, StrictUndefined

from .model import FileModel, MethodModel
from .options import GenerationOptions
from .types import PATH_PARAM

# Content of a generated file for a proto with no enums, messages or services.
EMPTY_FILE_CONTENT = "export default {}"


@dataclass(frozen=True)
class RenderContext:
    file: Optional[FileModel]
    enable_styling_check: bool
    use_static_classes: bool

    def template_vars(self) -> dict:
        return {
            "file": self.file,
            "enable_styling_check": self.enable_styling_check,
            "use_static_classes": self.use_static_classes,
        }


# ── Helpers ──────────────────────────────────────────────────────────

def _req_expr(field_path: str) -> str:
    """user.id → req["user"]["id"]"""
    return "req" + "".join(f'["{part}"]' for part in field_path.split("."))


def render_url(method: MethodModel) -> str:
    """Body of the TypeScript template literal used as the request URL."""
    url = PATH_PARAM.sub(lambda m: "${" + _req_expr(m.group(1)) + "}", method.path)
    if method.http_method in ("GET", "DELETE") and method.body != "*":
        params = ", ".join(f'"{p}"' for p in method.path_params)
        url += "?${fm.renderURLSearchParams(req, [" + params + "])}"
    return url


def build_init_req(method: MethodModel, instance: bool = False) -> str:
    """Object literal passed as the fetch init for one call."""
    parts = ["...this.initReq, ...initReq" if instance else "...initReq",
             f'method: "{method.http_method}"']
    if method.body == "*":
        parts.append("body: JSON.stringify(req)")
    elif method.body:
        parts.append(f"body: JSON.stringify({_req_expr(method.body)})")
    return "{" + ", ".join(parts) + "}"


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


# ── Sources ──────────────────────────────────────────────────────────

_HEADER = """\
{% if not enable_styling_check %}
/* eslint-disable */
// @ts-nocheck
{% endif %}
/*
* This file is a generated Typescript file for GRPC Gateway, DO NOT MODIFY
*/
"""

FILE_TEMPLATE = _HEADER + """\
{% if file.services.needs_fetch_module() %}

import * as fm from "{{ file.fetch_module_import }}"
{% endif %}
{% for dep in file.dependencies %}
import * as {{ dep.module_identifier }} from "{{ dep.import_path }}"
{% endfor %}
{% for enum in file.enums %}

export enum {{ enum.name }} {
{% for value in enum.values %}
  {{ value.name }} = "{{ value.name }}",
{% endfor %}
}
{% endfor %}
{% for message in file.messages %}

export type {{ message.name }} = {
{% for field in message.fields %}
  {{ field.name }}?: {{ field.ts_type }}
{% endfor %}
}
{% endfor %}
{% for service in file.services %}
{% if use_static_classes %}

export class {{ service.name }} {
{% for method in service.methods %}
{% if method.server_streaming %}
  static {{ method.name }}(req: {{ method.input_type }}, entityNotifier?: fm.NotifyStreamEntityArrival<{{ method.output_type }}>, initReq?: fm.InitReq): Promise<void> {
    return fm.fetchStreamingRequest<{{ method.input_type }}, {{ method.output_type }}>(`{{ render_url(method) }}`, entityNotifier, {{ build_init_req(method) }})
  }
{% else %}
  static {{ method.name }}(req: {{ method.input_type }}, initReq?: fm.InitReq): Promise<{{ method.output_type }}> {
    return fm.fetchReq<{{ method.input_type }}, {{ method.output_type }}>(`{{ render_url(method) }}`, {{ build_init_req(method) }})
  }
{% endif %}
{% endfor %}
}
{% else %}

export class {{ service.name }}Client {
{% if service.methods %}
  private initReq?: fm.InitReq

  constructor(initReq?: fm.InitReq) {
    this.initReq = initReq
  }
{% endif %}
{% for method in service.methods %}

{% if method.server_streaming %}
  {{ method.name | lower_first }}(req: {{ method.input_type }}, entityNotifier?: fm.NotifyStreamEntityArrival<{{ method.output_type }}>, initReq?: fm.InitReq): Promise<void> {
    return fm.fetchStreamingRequest<{{ method.input_type }}, {{ method.output_type }}>(`{{ render_url(method) }}`, entityNotifier, {{ build_init_req(method, instance=True) }})
  }
{% else %}
  {{ method.name | lower_first }}(req: {{ method.input_type }}, initReq?: fm.InitReq): Promise<{{ method.output_type }}> {
    return fm.fetchReq<{{ method.input_type }}, {{ method.output_type }}>(`{{ render_url(method) }}`, {{ build_init_req(method, instance=True) }})
  }
{% endif %}
{% endfor %}
}
{% endif %}
{% endfor %}
"""

FETCH_MODULE_TEMPLATE = _HEADER + """\

export interface InitReq extends RequestInit {
  pathPrefix?: string
}

export function fetchReq<I, O>(path: string, init?: InitReq): Promise<O> {
  const {pathPrefix, ...req} = init || {}

  const url = pathPrefix ? `${pathPrefix}${path}` : path

  return fetch(url, req).then(r => r.json().then((body: O) => {
    if (!r.ok) { throw body; }
    return body;
  })) as Promise<O>
}

// NotifyStreamEntityArrival is called once for every entity of a server-streaming response
export type NotifyStreamEntityArrival<T> = (resp: T) => void

export async function fetchStreamingRequest<S, R>(path: string, callback?: NotifyStreamEntityArrival<R>, init?: InitReq) {
  const {pathPrefix, ...req} = init || {}
  const url = pathPrefix ? `${pathPrefix}${path}` : path
  const result = await fetch(url, req)
  if (!result.ok) {
    const resp = await result.json()
    const errMsg = resp.error && resp.error.message ? resp.error.message : ""
    throw new Error(errMsg)
  }

  if (!result.body) {
    throw new Error("response doesn't have a body")
  }

  const reader = result.body.getReader()
  const decoder = new TextDecoder()
  let buffered = ""
  while (true) {
    const {done, value} = await reader.read()
    if (done) {
      break
    }
    buffered += decoder.decode(value, {stream: true})
    const lines = buffered.split("\\n")
    buffered = lines.pop() || ""
    for (const line of lines) {
      if (line.trim() === "") {
        continue
      }
      const parsed = JSON.parse(line)
      if (parsed.error) {
        throw new Error(parsed.error.message)
      }
      if (callback) {
        callback(parsed.result)
      }
    }
  }
}

type Primitive = string | boolean | number;
type RequestPayload = Record<string, unknown>;
type FlattenedRequestPayload = Record<string, Primitive | Array<Primitive>>;

function isPlainObject(value: unknown): boolean {
  const isObject = Object.prototype.toString.call(value).slice(8, -1) === "Object";
  const isObjLike = value !== null && isObject;

  if (!isObjLike || !isObject) {
    return false;
  }

  const proto = Object.getPrototypeOf(value);

  return typeof proto === "object" && proto.constructor === Object.prototype.constructor;
}

function isPrimitive(value: unknown): boolean {
  return ["string", "number", "boolean"].some(t => typeof value === t);
}

function isZeroValuePrimitive(value: Primitive): boolean {
  return value === false || value === 0 || value === "";
}

function flattenRequestPayload<T extends RequestPayload>(
  requestPayload: T,
  path: string = ""
): FlattenedRequestPayload {
  return Object.keys(requestPayload).reduce(
    (acc: FlattenedRequestPayload, key: string): FlattenedRequestPayload => {
      const value = requestPayload[key];
      const newPath = path ? [path, key].join(".") : key;

      const isNonEmptyPrimitiveArray =
        Array.isArray(value) &&
        value.every(v => isPrimitive(v)) &&
        value.length > 0;

      const isNonZeroValuePrimitive =
        isPrimitive(value) && !isZeroValuePrimitive(value as Primitive);

      let objectToMerge = {};

      if (isPlainObject(value)) {
        objectToMerge = flattenRequestPayload(value as RequestPayload, newPath);
      } else if (isNonZeroValuePrimitive || isNonEmptyPrimitiveArray) {
        objectToMerge = { [newPath]: value };
      }

      return { ...acc, ...objectToMerge };
    },
    {} as FlattenedRequestPayload
  ) as FlattenedRequestPayload;
}

export function renderURLSearchParams<T extends RequestPayload>(
  requestPayload: T,
  urlPathParams: string[] = []
): string {
  const flattenedRequestPayload = flattenRequestPayload(requestPayload);

  const urlSearchParams = Object.keys(flattenedRequestPayload).reduce(
    (acc: string[][], key: string): string[][] => {
      // key should not be present in the url path as a parameter
      const value = flattenedRequestPayload[key];
      if (urlPathParams.find(f => f === key)) {
        return acc;
      }
      return Array.isArray(value)
        ? [...acc, ...value.map(m => [key, m.toString()])]
        : (acc = [...acc, [key, value.toString()]]);
    },
    [] as string[][]
  );

  return new URLSearchParams(urlSearchParams).toString();
}
"""


def _environment() -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.globals["render_url"] = render_url
    env.globals["build_init_req"] = build_init_req
    env.filters["lower_first"] = lower_first
    return env


class TemplateProvider:
    """
    Compiled per-file and fetch-module templates for one invocation.

    The sources can be overridden, which the tests use to exercise render
    failures and whitespace handling.
    """

    def __init__(self, options: GenerationOptions,
                 file_source: str = FILE_TEMPLATE,
                 fetch_module_source: str = FETCH_MODULE_TEMPLATE):
        self.options = options
        env = _environment()
        self.file_template = env.from_string(file_source)
        self.fetch_module_template = env.from_string(fetch_module_source)

    def context(self, file: Optional[FileModel] = None) -> RenderContext:
        return RenderContext(
            file=file,
            enable_styling_check=self.options.enable_styling_check,
            use_static_classes=self.options.use_static_classes,
        )

    def render_file(self, ctx: RenderContext) -> str:
        return self.file_template.render(**ctx.template_vars())

    def render_fetch_module(self, ctx: RenderContext) -> str:
        return self.fetch_module_template.render(**ctx.template_vars())
