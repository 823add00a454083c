import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from shared_libs.config_models.clock_chain_models import ClockChain
from shared_libs.config_models.errors import PluginLoadError
from shared_libs.plugin_core.registry_loader import PluginRegistry, load_registry

from clockbuild.merge.plugin_defaults import merge_plugin_defaults
from clockbuild.utils.aliases import resolve_clock_aliases
from clockbuild.validation.cross import validate_clock_chain
from clockbuild.validation.document import ClockChainLoader

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    config_path: Path
    chain: ClockChain
    registry: Optional[PluginRegistry]
    plugin_error: Optional[PluginLoadError] = None

    @property
    def defaults_applied(self) -> bool:
        return self.registry is not None


def process_clock_chain(chain: ClockChain, registry: Optional[PluginRegistry]) -> ClockChain:
    """Resolve aliases, merge plugin defaults (when a registry is given) and validate."""
    chain = resolve_clock_aliases(chain)
    if registry is not None:
        chain = merge_plugin_defaults(chain, registry)
    validate_clock_chain(chain)
    return chain


def run_pipeline(
    config_path: Union[Path, str],
    plugins_dir: Optional[Path] = None,
    *,
    tolerate_plugin_errors: bool = False,
) -> PipelineResult:
    """Load a configuration file and run it through the whole pipeline.

    With tolerate_plugin_errors, a plugin directory that fails to load is
    logged and the document is validated without hardware defaults.
    """
    config_path = Path(config_path)
    chain = ClockChainLoader(config_path).load()
    chain = resolve_clock_aliases(chain)

    registry: Optional[PluginRegistry] = None
    plugin_error: Optional[PluginLoadError] = None
    try:
        registry = load_registry(plugins_dir)
    except PluginLoadError as e:
        if not tolerate_plugin_errors:
            raise
        logger.warning(f"Failed to load plugins: {e}; continuing without plugin defaults")
        plugin_error = e

    if registry is not None:
        chain = merge_plugin_defaults(chain, registry)
    validate_clock_chain(chain)

    return PipelineResult(config_path=config_path, chain=chain, registry=registry, plugin_error=plugin_error)
