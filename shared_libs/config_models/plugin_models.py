# shared_libs/config_models/plugin_models.py

from typing import Dict, Optional

from pydantic import BaseModel, Field

from .clock_chain_models import Number, PinState, PinStateValue


class PluginInfo(BaseModel):
    name: str = Field("", description="Plugin name referenced by subsystems' hardwarePlugin. Required.")
    description: Optional[str] = Field(None, description="What hardware the plugin covers.")
    version: Optional[str] = Field(None, description="Plugin document version.")
    vendor: Optional[str] = Field(None, description="Hardware vendor.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class PluginPinDefaults(BaseModel):
    priority: Optional[Number] = Field(None, description="Default input priority.")
    state: Optional[PinStateValue] = Field(None, description="Default output state.")
    model_config = {"extra": "forbid", "populate_by_name": True}

    def to_pin_state(self) -> PinState:
        return PinState(priority=self.priority, state=self.state)

class PinSpecificDefaults(BaseModel):
    """Defaults for the EEC and PPS DPLL channels of a single board label."""
    eec: Optional[PluginPinDefaults] = None
    pps: Optional[PluginPinDefaults] = None
    model_config = {"extra": "forbid", "populate_by_name": True}

class HardwarePluginConfig(BaseModel):
    plugin_info: PluginInfo = Field(default_factory=PluginInfo, alias="pluginInfo", description="Plugin metadata.")
    specific_defaults: Dict[str, PinSpecificDefaults] = Field(
        default_factory=dict,
        alias="specificDefaults",
        description="Pin defaults keyed by board label.",
    )
    behavior_notes: Optional[str] = Field(None, alias="behaviorNotes", description="Informational only.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

    @property
    def name(self) -> str:
        return self.plugin_info.name
