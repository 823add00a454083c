import logging
from typing import Dict, List, Tuple

from shared_libs.config_models.clock_chain_models import (
    AUTO_DEFAULT_CONDITION_NAME,
    DEFAULT_SOURCE_NAME,
    ClockChain,
    Condition,
    ConditionType,
    DesiredState,
    SourceState,
    Subsystem,
    merge_key,
)
from shared_libs.config_models.plugin_models import HardwarePluginConfig
from shared_libs.plugin_core.registry_loader import PluginRegistry

logger = logging.getLogger(__name__)


def build_default_condition() -> Condition:
    return Condition(
        name=AUTO_DEFAULT_CONDITION_NAME,
        sources=[SourceState(source_name=DEFAULT_SOURCE_NAME, condition_type=ConditionType.DEFAULT)],
        desired_states=[],
    )


class PluginDefaultsMerger:
    """Merges hardware plugin pin defaults into the default condition(s).

    Plugin defaults form the base configuration and user desired states are
    the overlay: an existing desired state only gains the EEC or PPS block it
    does not set, a missing one is created from the plugin defaults.
    """

    def __init__(self, registry: PluginRegistry):
        self.registry = registry
        self.added = 0
        self.overlaid = 0

    def merge(self, chain: ClockChain) -> ClockChain:
        self.added = 0
        self.overlaid = 0
        merged = chain.model_copy(deep=True)
        if merged.behavior is None:
            logger.debug("No behavior section; nothing to merge plugin defaults into")
            return merged

        conditions = merged.behavior.conditions or []
        if not any(condition.is_default for condition in conditions):
            logger.info(f"No default condition found; adding '{AUTO_DEFAULT_CONDITION_NAME}'")
            conditions.insert(0, build_default_condition())
        merged.behavior.conditions = conditions

        plugged = self._subsystems_with_plugins(merged)
        for condition in conditions:
            if condition.is_default:
                self._apply_to_condition(condition, plugged)

        logger.info(
            f"Plugin defaults merged: {self.added} desired state(s) added, {self.overlaid} pin block(s) filled in"
        )
        return merged

    def _subsystems_with_plugins(self, chain: ClockChain) -> List[Tuple[Subsystem, HardwarePluginConfig]]:
        plugged: List[Tuple[Subsystem, HardwarePluginConfig]] = []
        for subsystem in chain.structure:
            if not subsystem.hardware_plugin:
                continue
            plugin = self.registry.lookup(subsystem.hardware_plugin)
            if plugin is None:
                logger.warning(
                    f"Hardware plugin '{subsystem.hardware_plugin}' for subsystem '{subsystem.name}' not loaded; "
                    "no defaults applied"
                )
                continue
            plugged.append((subsystem, plugin))
        return plugged

    def _apply_to_condition(
        self,
        condition: Condition,
        plugged: List[Tuple[Subsystem, HardwarePluginConfig]],
    ) -> None:
        existing_states: Dict[str, DesiredState] = {ds.merge_key: ds for ds in condition.desired_states}
        for subsystem, plugin in plugged:
            self._apply_subsystem_defaults(subsystem, plugin, existing_states, condition.desired_states)

    def _apply_subsystem_defaults(
        self,
        subsystem: Subsystem,
        plugin: HardwarePluginConfig,
        existing_states: Dict[str, DesiredState],
        desired_states: List[DesiredState],
    ) -> None:
        declared_labels = subsystem.dpll.board_labels()
        clock_id = subsystem.dpll.clock_id

        # Appended in sorted label order
        for board_label in sorted(plugin.specific_defaults):
            if board_label not in declared_labels:
                continue
            defaults = plugin.specific_defaults[board_label]
            key = merge_key(clock_id, board_label)

            existing_state = existing_states.get(key)
            if existing_state is not None:
                if existing_state.eec is None and defaults.eec is not None:
                    existing_state.eec = defaults.eec.to_pin_state()
                    self.overlaid += 1
                    logger.debug(f"{key}: EEC filled in from plugin '{plugin.name}'")
                if existing_state.pps is None and defaults.pps is not None:
                    existing_state.pps = defaults.pps.to_pin_state()
                    self.overlaid += 1
                    logger.debug(f"{key}: PPS filled in from plugin '{plugin.name}'")
                continue

            new_state = DesiredState(clock_id=clock_id, board_label=board_label)
            if defaults.eec is not None:
                new_state.eec = defaults.eec.to_pin_state()
            if defaults.pps is not None:
                new_state.pps = defaults.pps.to_pin_state()
            if new_state.eec is None and new_state.pps is None:
                continue

            desired_states.append(new_state)
            existing_states[key] = new_state
            self.added += 1
            logger.debug(f"{key}: desired state added from plugin '{plugin.name}'")


def merge_plugin_defaults(chain: ClockChain, registry: PluginRegistry) -> ClockChain:
    return PluginDefaultsMerger(registry).merge(chain)
