import logging
from typing import Set

from shared_libs.config_models.clock_chain_models import (
    DEFAULT_SOURCE_NAME,
    ClockChain,
    PinConfig,
    SourceConfig,
    SourceType,
    Subsystem,
)
from shared_libs.config_models.errors import ValidationError
from clockbuild.utils.formats import check_alphanum_dash, check_clock_id

logger = logging.getLogger(__name__)


def _check_pin_config(pin: PinConfig) -> None:
    if pin.frequency is not None and pin.sync_technology_config_name:
        raise ValueError("frequency and syncTechnologyConfigName are mutually exclusive")
    if pin.connector:
        try:
            check_alphanum_dash(pin.connector)
        except ValueError as e:
            raise ValueError(f"invalid connector format: {e}") from e


def _check_source_config(source: SourceConfig) -> None:
    try:
        check_clock_id(source.clock_id)
    except ValueError as e:
        raise ValueError(f"invalid clock ID: {e}") from e

    if source.source_type == SourceType.PTP_TIME_RECEIVER and not source.ptp_time_receivers:
        raise ValueError("ptpTimeReceivers must be specified when sourceType is ptpTimeReceiver")

    for receiver in source.ptp_time_receivers or []:
        try:
            check_alphanum_dash(receiver)
        except ValueError as e:
            raise ValueError(f"invalid PTP time receiver format: {e}") from e


class CrossValidator:
    """Checks a resolved and merged clock chain, stopping at the first violation.

    The order of the checks decides which error is reported for a document
    with several problems: structure, common definition names, subsystems
    and their pins, sources, then conditions.
    """

    def __init__(self, chain: ClockChain):
        self.chain = chain
        self.esync_names: Set[str] = set()
        self.refsync_names: Set[str] = set()
        self.source_names: Set[str] = set()

    def validate(self) -> None:
        if not self.chain.structure:
            raise ValidationError("structure must contain at least one subsystem")

        self._check_common_definitions()
        for subsystem in self.chain.structure:
            self._check_subsystem(subsystem)
        self._check_behavior()
        logger.info(f"Validation passed for {len(self.chain.structure)} subsystem(s)")

    def _check_common_definitions(self) -> None:
        common = self.chain.common_definitions
        if common is None:
            return
        for esync in common.esync_definitions or []:
            if not esync.name:
                raise ValidationError("eSync definition name must not be empty")
            if esync.name in self.esync_names:
                raise ValidationError(f"duplicate eSync definition name: {esync.name}")
            self.esync_names.add(esync.name)
        for refsync in common.ref_sync_definitions or []:
            if not refsync.name:
                raise ValidationError("refSync definition name must not be empty")
            if refsync.name in self.refsync_names:
                raise ValidationError(f"duplicate refSync definition name: {refsync.name}")
            self.refsync_names.add(refsync.name)

    def _check_subsystem(self, subsystem: Subsystem) -> None:
        dpll = subsystem.dpll
        if dpll.clock_id:
            try:
                check_clock_id(dpll.clock_id)
            except ValueError as e:
                raise ValidationError(f"invalid clock ID in subsystem {subsystem.name}: {e}") from e

        phase_labels = set(dpll.phase_inputs or {}) | set(dpll.phase_outputs or {})

        for category, label, pin in dpll.iter_pins():
            try:
                _check_pin_config(pin)
            except ValueError as e:
                raise ValidationError(f"invalid pin config {label} in subsystem {subsystem.name}: {e}") from e

            sync_name = pin.sync_technology_config_name
            if sync_name and sync_name not in self.esync_names and sync_name not in self.refsync_names:
                raise ValidationError(
                    f"referenced sync technology config {sync_name} not found in subsystem {subsystem.name}, pin {label}"
                )

            if pin.reference_sync:
                if category == "frequencyOutputs":
                    raise ValidationError(
                        f"referenceSync is not supported on frequency output pin {label} in subsystem {subsystem.name}"
                    )
                if category != "frequencyInputs":
                    raise ValidationError(
                        f"referenceSync specified on non-frequency-input pin {label} in subsystem {subsystem.name}"
                    )
                if pin.reference_sync not in phase_labels:
                    raise ValidationError(
                        f"referenceSync '{pin.reference_sync}' not found among phase pins in subsystem "
                        f"{subsystem.name} (referenced by {label})"
                    )

    def _check_behavior(self) -> None:
        behavior = self.chain.behavior
        if behavior is None:
            return

        for source in behavior.sources or []:
            try:
                _check_source_config(source)
            except ValueError as e:
                raise ValidationError(f"invalid source {source.name}: {e}") from e
            if source.name in self.source_names:
                raise ValidationError(f"duplicate source name: {source.name}")
            self.source_names.add(source.name)

        for condition in behavior.conditions or []:
            for source_state in condition.sources:
                if source_state.source_name != DEFAULT_SOURCE_NAME and source_state.source_name not in self.source_names:
                    raise ValidationError(
                        f"referenced source {source_state.source_name} not found in condition {condition.name}"
                    )
            for desired_state in condition.desired_states:
                if desired_state.clock_id:
                    try:
                        check_clock_id(desired_state.clock_id)
                    except ValueError as e:
                        raise ValidationError(f"invalid clock ID in desired state: {e}") from e


def validate_clock_chain(chain: ClockChain) -> None:
    """Raise ValidationError on the first invariant the chain violates."""
    CrossValidator(chain).validate()
