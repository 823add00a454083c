# shared_libs/config_models/clock_chain_models.py

import enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field
from pydantic_core import core_schema
from pydantic.annotated_handlers import GetCoreSchemaHandler

# Sentinel source name used by "default" conditions; not a declared source.
DEFAULT_SOURCE_NAME = "Default on profile (re)load"
AUTO_DEFAULT_CONDITION_NAME = "Default Configuration (Auto-generated)"

# YAML integers stay integers on the way back out
Number = Union[int, float]

# --- Custom Type for Clock IDs ---
class ClockIdString(str):
    """
    A clock ID or clock alias. Unquoted IDs arrive from YAML as integers;
    those read by yaml_loader keep the text they were written with
    ("0123", "0x112233").
    """
    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_before_validator_function(_int_to_str, core_schema.str_schema())

def _int_to_str(value: Any) -> Any:
    # str() of a ScalarInt is its source text
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value

# --- Enums for controlled vocabulary ---
class SourceType(str, enum.Enum):
    PTP_TIME_RECEIVER = "ptpTimeReceiver"
    GNSS = "gnss"

class ConditionType(str, enum.Enum):
    DEFAULT = "default"
    LOCKED = "locked"
    LOST = "lost"

class PinStateValue(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    SELECTABLE = "selectable"

# --- Common Definitions ---
class ESyncConfig(BaseModel):
    """eSync embeds synchronization markers in a phase signal."""
    transfer_frequency: Number = Field(..., alias="transferFrequency", description="Transfer frequency in Hz.")
    embedded_sync_frequency: Number = Field(1, alias="embeddedSyncFrequency", description="Embedded sync frequency in Hz (1PPS if omitted).")
    duty_cycle_pct: Number = Field(25, alias="dutyCyclePct", description="Phase signal pulse duty cycle in percent.")
    model_config = {"extra": "forbid", "populate_by_name": True}

class ESyncDefinition(BaseModel):
    name: str = Field(..., description="Unique name referenced from pin configurations.")
    esync_config: ESyncConfig = Field(..., alias="esyncConfig", description="eSync feature parameters.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class RefSyncDefinition(BaseModel):
    name: str = Field(..., description="Unique name referenced from pin configurations.")
    related_pin_board_label: Optional[str] = Field(None, alias="relatedPinBoardLabel", description="Optional related pin/board label.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class ClockIdentifier(BaseModel):
    alias: str = Field(..., description="Short human-friendly identifier.")
    clock_id: ClockIdString = Field(..., alias="clockId", description="Clock ID the alias stands for (decimal or hex).")
    description: Optional[str] = Field(None, description="Optional context for the mapping.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class CommonDefinitions(BaseModel):
    """Definitions shared by several entities of the chain, referenced by name."""
    esync_definitions: Optional[List[ESyncDefinition]] = Field(None, alias="eSyncDefinitions")
    ref_sync_definitions: Optional[List[RefSyncDefinition]] = Field(None, alias="refSyncDefinitions")
    clock_identifiers: Optional[List[ClockIdentifier]] = Field(None, alias="clockIdentifiers")
    model_config = {"extra": "forbid", "populate_by_name": True}

# --- Structure ---
class PhaseAdjustment(BaseModel):
    """Phase compensation for routing, logic and cable delays, in picoseconds."""
    internal: int = Field(..., description="Board hardware delay compensation (required).")
    external: Optional[int] = Field(None, description="External cable delay compensation.")
    description: Optional[str] = None
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class PinConfig(BaseModel):
    connector: Optional[str] = Field(None, description="Physical connector the pin is routed to (e.g. 'SMA1').")
    phase_adjustment: Optional[PhaseAdjustment] = Field(None, alias="phaseAdjustment")
    frequency: Optional[Number] = Field(None, description="Frequency in Hz. Mutually exclusive with syncTechnologyConfigName.")
    sync_technology_config_name: Optional[str] = Field(None, alias="syncTechnologyConfigName", description="Name of an eSync or ref-sync definition.")
    description: Optional[str] = None
    reference_sync: Optional[str] = Field(None, alias="referenceSync", description="Board label of a phase pin paired with this frequency input.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class DPLL(BaseModel):
    clock_id: Optional[ClockIdString] = Field(None, alias="clockId", description="Clock ID or alias. If omitted, the hardware must support discovery.")
    phase_inputs: Optional[Dict[str, PinConfig]] = Field(None, alias="phaseInputs")
    phase_outputs: Optional[Dict[str, PinConfig]] = Field(None, alias="phaseOutputs")
    frequency_inputs: Optional[Dict[str, PinConfig]] = Field(None, alias="frequencyInputs")
    frequency_outputs: Optional[Dict[str, PinConfig]] = Field(None, alias="frequencyOutputs")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

    def pin_mappings(self) -> List[Tuple[str, Dict[str, PinConfig]]]:
        """The four pin mappings keyed by their YAML name, in declaration order."""
        return [
            ("phaseInputs", self.phase_inputs or {}),
            ("phaseOutputs", self.phase_outputs or {}),
            ("frequencyInputs", self.frequency_inputs or {}),
            ("frequencyOutputs", self.frequency_outputs or {}),
        ]

    def iter_pins(self) -> Iterator[Tuple[str, str, PinConfig]]:
        for category, pins in self.pin_mappings():
            for board_label, pin in pins.items():
                yield category, board_label, pin

    def board_labels(self) -> Set[str]:
        return {board_label for _, board_label, _ in self.iter_pins()}

class Ethernet(BaseModel):
    ports: List[str] = Field(..., description="Port names; the default port is listed first.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class Subsystem(BaseModel):
    """One DPLL and the Ethernet ports linked to it."""
    name: str = Field(..., description="Human-readable subsystem name.")
    hardware_plugin: Optional[str] = Field(None, alias="hardwarePlugin", description="Plugin supplying pin defaults for this subsystem.")
    dpll: DPLL = Field(..., description="DPLL configuration.")
    ethernet: List[Ethernet] = Field(..., min_length=1, description="Ethernet subsystems of this unit.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

# --- Behavior ---
class SourceConfig(BaseModel):
    name: str = Field(..., description="System-wide unique source name.")
    clock_id: ClockIdString = Field(..., alias="clockId", description="Clock ID or alias of the receiving subsystem.")
    source_type: SourceType = Field(..., alias="sourceType")
    board_label: str = Field(..., alias="boardLabel", description="DPLL pin receiving the source.")
    ptp_time_receivers: Optional[List[str]] = Field(None, alias="ptpTimeReceivers", description="Required when sourceType is ptpTimeReceiver.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class SourceState(BaseModel):
    source_name: str = Field(..., alias="sourceName")
    condition_type: ConditionType = Field(..., alias="conditionType")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

class PinState(BaseModel):
    """Inputs are controlled through priority, outputs through state."""
    priority: Optional[Number] = None
    state: Optional[PinStateValue] = None
    model_config = {"extra": "forbid", "populate_by_name": True}

class DesiredState(BaseModel):
    clock_id: Optional[ClockIdString] = Field(None, alias="clockId")
    board_label: Optional[str] = Field(None, alias="boardLabel")
    eec: Optional[PinState] = Field(None, description="Enhanced Ethernet Clock pin state.")
    pps: Optional[PinState] = Field(None, description="Pulse Per Second pin state.")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

    @property
    def merge_key(self) -> str:
        return merge_key(self.clock_id, self.board_label)

class Condition(BaseModel):
    """Source states AND-ed together; the first one is the triggering condition."""
    name: str = Field(..., description="Human-readable condition name.")
    sources: List[SourceState] = Field(..., min_length=1)
    desired_states: List[DesiredState] = Field(default_factory=list, alias="desiredStates")
    model_config = {"extra": "forbid", "populate_by_name": True, "coerce_numbers_to_str": True}

    @property
    def is_default(self) -> bool:
        return bool(self.sources) and self.sources[0].condition_type == ConditionType.DEFAULT

class Behavior(BaseModel):
    sources: Optional[List[SourceConfig]] = None
    conditions: Optional[List[Condition]] = None
    model_config = {"extra": "forbid", "populate_by_name": True}

# --- Root ---
class ClockChain(BaseModel):
    common_definitions: Optional[CommonDefinitions] = Field(None, alias="commonDefinitions")
    structure: List[Subsystem] = Field(default_factory=list, description="Synchronization subsystems; at least one.")
    behavior: Optional[Behavior] = None
    model_config = {"extra": "forbid", "populate_by_name": True}

    def to_document(self) -> dict:
        """Plain YAML-ready dict with camelCase keys and absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

def merge_key(clock_id: Optional[str], board_label: Optional[str]) -> str:
    return f"{clock_id or ''}:{board_label or ''}"
