"""Device profile loading and validation for YAML-based razerctl profiles."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from razerctl.core.chroma import LedId
from razerctl.core.errors import ProfileLoadError, ProfileValidationError
from razerctl.core.errors import ValidationError as DomainValidationError
from razerctl.core.model import DeviceProfile, OperationSpec, PollingRateKind, VarStore

_HEX_ID_RE = re.compile(r"^0x[0-9a-f]{1,4}$")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[int, DeviceProfile]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("razerctl.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "razerctl/profiles", xdg_data / "razerctl/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _normalize_id(value: Any, *, context: str, maximum: int) -> int:
    if isinstance(value, int):
        parsed = value
    else:
        normalized = str(value).strip().lower()
        if not _HEX_ID_RE.match(normalized):
            raise ProfileValidationError(f"{context} must be a hex literal like 0x007d")
        parsed = int(normalized, 16)
    if parsed > maximum:
        raise ProfileValidationError(f"{context} must be <= 0x{maximum:x}")
    return parsed


def _normalize_bool(value: Any, *, context: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise ProfileValidationError(f"{context} must be boolean true/false")


def _normalize_led(value: Any, *, context: str) -> LedId:
    try:
        return LedId.from_name(str(value))
    except DomainValidationError as exc:
        raise ProfileValidationError(f"{context}: {exc}") from exc


def _var_store(flag: bool) -> VarStore:
    return VarStore.VAR_STORE if flag else VarStore.NO_STORE


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> DeviceProfile:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    profile_id = doc["id"]
    default_store = _normalize_bool(
        doc.get("variable_store", True),
        context=f"{profile_id}.variable_store",
    )

    operations: dict[str, OperationSpec] = {}
    for op_name, op_spec in doc["operations"].items():
        op_spec = op_spec or {}
        store = default_store
        if "variable_store" in op_spec:
            store = _normalize_bool(
                op_spec["variable_store"],
                context=f"{profile_id}.operations.{op_name}.variable_store",
            )
        operations[op_name] = OperationSpec(name=op_name, var_store=_var_store(store))

    dpi_low, dpi_high = doc["dpi_range"]
    if dpi_low > dpi_high:
        raise ProfileValidationError(f"{profile_id}.dpi_range must be ascending, got {doc['dpi_range']}")

    return DeviceProfile(
        id=profile_id,
        name=doc["name"],
        product_id=_normalize_id(doc["product_id"], context=f"{profile_id}.product_id", maximum=0xFFFF),
        transaction_id=_normalize_id(
            doc["transaction_id"],
            context=f"{profile_id}.transaction_id",
            maximum=0xFF,
        ),
        var_store=_var_store(default_store),
        dpi_range=(dpi_low, dpi_high),
        polling_rate_kinds=tuple(
            PollingRateKind(kind) for kind in doc.get("polling_rate_kinds", ["normal"])
        ),
        led=_normalize_led(doc.get("led", "logo"), context=f"{profile_id}.led"),
        operations=operations,
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("razerctl.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[int, DeviceProfile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.product_id in profiles:
            raise ProfileValidationError(
                f"Packaged profiles '{profiles[profile.product_id].id}' and '{profile.id}' "
                f"share product id 0x{profile.product_id:04x}"
            )
        profiles[profile.product_id] = profile

    for path in _iter_user_profile_paths():
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.product_id in profiles:
            warning = (
                f"User profile '{profile.id}' overrides profile for product id "
                f"0x{profile.product_id:04x}"
            )
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.product_id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
