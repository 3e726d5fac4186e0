"""
Plugin options: parses the protoc parameter string and an optional YAML
config file into an immutable GenerationOptions.

    protoc --grpc-gateway-ts_out=gen --grpc-gateway-ts_opt=use_static_classes=false,loglevel=debug ...
"""

import dataclasses
import posixpath
from dataclasses import dataclass
from typing import Dict, Optional

import yaml


class OptionsError(Exception):
    """Raised when the plugin parameter or config file is invalid."""
    pass


LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True)
class GenerationOptions:
    enable_styling_check: bool = False
    use_static_classes: bool = True
    use_proto_names: bool = False
    fetch_module_directory: str = "."
    fetch_module_filename: str = "fetch.pb.ts"
    logtostderr: bool = False
    loglevel: str = "info"

    def fetch_module_path(self) -> str:
        """Output path of the shared fetch module, e.g. "lib/fetch.pb.ts"."""
        return posixpath.normpath(posixpath.join(self.fetch_module_directory,
                                                 self.fetch_module_filename))


_BOOL_KEYS = {"enable_styling_check", "use_static_classes", "use_proto_names",
              "logtostderr"}
_STR_KEYS = {"fetch_module_directory", "fetch_module_filename", "loglevel"}


def _to_bool(key: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise OptionsError(f"Option '{key}' expects true or false, got {value!r}")


def _check_output_path(key: str, value: str, source: str):
    """Output paths are relative to protoc's --*_out directory and must stay inside it."""
    if posixpath.isabs(value):
        raise OptionsError(f"Option '{key}' in {source} must be a relative path, got {value!r}")
    norm = posixpath.normpath(value)
    if norm == ".." or norm.startswith("../"):
        raise OptionsError(
            f"Option '{key}' in {source} must not point outside the output directory, "
            f"got {value!r}")


def _convert(values: Dict[str, object], source: str) -> Dict[str, object]:
    """Validate keys and coerce values to the GenerationOptions field types."""
    out = {}
    for key, value in values.items():
        if key in _BOOL_KEYS:
            out[key] = _to_bool(key, value)
        elif key in _STR_KEYS:
            if value is None or str(value) == "":
                raise OptionsError(f"Option '{key}' in {source} must not be empty")
            out[key] = str(value)
        else:
            raise OptionsError(f"Unknown option '{key}' in {source}")

    for key in ("fetch_module_directory", "fetch_module_filename"):
        if key in out:
            _check_output_path(key, out[key], source)

    if "loglevel" in out:
        out["loglevel"] = str(out["loglevel"]).lower()
        if out["loglevel"] not in LOG_LEVELS:
            raise OptionsError(
                f"Option 'loglevel' must be one of {', '.join(LOG_LEVELS)}, "
                f"got {values['loglevel']!r}")
    return out


def split_parameter(parameter: str) -> Dict[str, str]:
    """Split "a=1,b=2" into {"a": "1", "b": "2"}. A bare key means "true"."""
    values = {}
    for item in parameter.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        key = key.strip()
        if not key:
            raise OptionsError(f"Malformed parameter entry {item!r}")
        values[key] = value.strip() if sep else "true"
    return values


def load_config_yaml(yaml_str: str, source: str = "config") -> Dict[str, object]:
    """Parse a YAML options file into validated option values.

    Args:
        yaml_str: YAML document whose root is a mapping of option names.
        source: Name used in error messages.

    Raises:
        OptionsError: If the YAML is malformed or contains unknown options.
    """
    if not yaml_str or not yaml_str.strip():
        return {}

    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise OptionsError(f"Invalid YAML in {source}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OptionsError(f"YAML root of {source} must be a mapping")
    if "config" in data:
        raise OptionsError(f"'config' cannot be nested inside {source}")

    return _convert({str(k): v for k, v in data.items()}, source)


def parse_parameter(parameter: Optional[str]) -> GenerationOptions:
    """Build GenerationOptions from the request parameter string.

    A ``config=<path>`` entry loads a YAML file first; every other entry in
    the parameter string overrides the file.
    """
    raw = split_parameter(parameter or "")

    values: Dict[str, object] = {}
    config_path = raw.pop("config", None)
    if config_path:
        try:
            with open(config_path) as f:
                text = f.read()
        except OSError as e:
            raise OptionsError(f"Cannot read config file {config_path}: {e}")
        values.update(load_config_yaml(text, source=config_path))

    values.update(_convert(raw, "plugin parameter"))
    return dataclasses.replace(GenerationOptions(), **values)
