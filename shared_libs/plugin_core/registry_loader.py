from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Optional

import yaml
from pydantic import ValidationError

from shared_libs.config_models.errors import (
	DirectoryReadError,
	DuplicatePluginNameError,
	MalformedPluginError,
	MissingPluginNameError,
	describe_pydantic_error,
)
from shared_libs.config_models.plugin_models import HardwarePluginConfig
from shared_libs.config_models.yaml_loader import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_PLUGINS_DIR = Path("plugins")
PLUGIN_SUFFIXES = (".yaml", ".yml")


class PluginRegistry:
	"""Hardware plugins keyed by name. Read-only once built."""

	def __init__(
		self,
		plugins: Mapping[str, HardwarePluginConfig],
		sources: Optional[Mapping[str, Path]] = None,
	):
		self._plugins = MappingProxyType(dict(plugins))
		self._sources = MappingProxyType(dict(sources or {}))

	def lookup(self, name: str) -> Optional[HardwarePluginConfig]:
		return self._plugins.get(name)

	def names(self) -> FrozenSet[str]:
		return frozenset(self._plugins)

	def plugins(self) -> Iterator[HardwarePluginConfig]:
		for name in sorted(self._plugins):
			yield self._plugins[name]

	def source_of(self, name: str) -> Optional[Path]:
		return self._sources.get(name)

	def __contains__(self, name: object) -> bool:
		return name in self._plugins

	def __len__(self) -> int:
		return len(self._plugins)

	def __repr__(self) -> str:
		return f"PluginRegistry({sorted(self._plugins)})"


def load_plugin(path: Path) -> HardwarePluginConfig:
	"""Load and validate a single plugin document."""
	try:
		with path.open("r", encoding="utf-8") as f:
			raw = load_yaml(f)
	except OSError as e:
		raise MalformedPluginError(f"failed to read plugin file {path}: {e}") from e
	except yaml.YAMLError as e:
		raise MalformedPluginError(f"failed to parse plugin YAML {path}: {e}") from e

	if raw is None:
		raise MalformedPluginError(f"plugin file {path} is empty")
	if not isinstance(raw, dict):
		raise MalformedPluginError(f"plugin file {path} must contain a mapping at the top level")

	try:
		plugin = HardwarePluginConfig.model_validate(raw)
	except ValidationError as e:
		raise MalformedPluginError(f"invalid plugin {path}: {describe_pydantic_error(e)}") from e

	if not plugin.plugin_info.name:
		raise MissingPluginNameError(f"plugin {path} must have a name (pluginInfo.name)")
	return plugin


def _plugin_files(directory: Path) -> list[Path]:
	try:
		entries = sorted(directory.iterdir(), key=lambda p: p.name)
	except OSError as e:
		raise DirectoryReadError(f"failed to read plugins directory {directory}: {e}") from e
	return [p for p in entries if p.is_file() and p.suffix in PLUGIN_SUFFIXES]


def load_registry(directory: Optional[Path] = None) -> PluginRegistry:
	"""Load every plugin document directly inside directory.

	If directory is None, uses DEFAULT_PLUGINS_DIR. A missing directory gives
	an empty registry; any bad plugin file fails the whole load.
	"""
	plugins_dir = Path(directory) if directory is not None else DEFAULT_PLUGINS_DIR
	if not plugins_dir.exists():
		logger.info(f"Plugins directory {plugins_dir} not found; no hardware defaults available")
		return PluginRegistry({})
	if not plugins_dir.is_dir():
		raise DirectoryReadError(f"plugins path {plugins_dir} is not a directory")

	plugins: Dict[str, HardwarePluginConfig] = {}
	sources: Dict[str, Path] = {}
	for path in _plugin_files(plugins_dir):
		plugin = load_plugin(path)
		name = plugin.plugin_info.name
		if name in plugins:
			raise DuplicatePluginNameError(
				f"plugin name '{name}' declared by both {sources[name]} and {path}"
			)
		plugins[name] = plugin
		sources[name] = path
		logger.debug(f"Loaded plugin '{name}' from {path}")

	logger.info(f"Loaded {len(plugins)} hardware plugin(s) from {plugins_dir}: {sorted(plugins)}")
	return PluginRegistry(plugins, sources)
