import logging
from typing import Dict, Optional

from shared_libs.config_models.clock_chain_models import ClockChain, CommonDefinitions
from shared_libs.config_models.errors import (
    DuplicateAliasError,
    InvalidAliasFormatError,
    InvalidClockIDFormatError,
    UnresolvedAliasError,
)
from clockbuild.utils.formats import is_alphanum_dash, is_valid_clock_id

logger = logging.getLogger(__name__)


def build_alias_map(common_definitions: Optional[CommonDefinitions]) -> Dict[str, str]:
    """Map each clock alias to its clock ID, checking alias and ID formats."""
    alias_to_clock: Dict[str, str] = {}
    if common_definitions is None:
        return alias_to_clock

    for ident in common_definitions.clock_identifiers or []:
        if not ident.alias:
            raise InvalidAliasFormatError("clockIdentifiers: alias must not be empty")
        if not is_alphanum_dash(ident.alias):
            raise InvalidAliasFormatError(
                f"clockIdentifiers: invalid alias '{ident.alias}': "
                "value must contain only alphanumeric characters, dashes, and underscores"
            )
        if not is_valid_clock_id(ident.clock_id):
            raise InvalidClockIDFormatError(
                f"clockIdentifiers: alias '{ident.alias}' has invalid clockId: "
                f"invalid clock ID format: {ident.clock_id} (must be decimal or hex)"
            )
        if ident.alias in alias_to_clock:
            raise DuplicateAliasError(f"clockIdentifiers: duplicate alias '{ident.alias}'")
        alias_to_clock[ident.alias] = ident.clock_id

    return alias_to_clock


def resolve_clock_id(value: str, alias_to_clock: Dict[str, str]) -> str:
    """Return value if it is already a clock ID, else the clock ID it aliases."""
    if value == "" or is_valid_clock_id(value):
        return value
    if value in alias_to_clock:
        return alias_to_clock[value]
    raise UnresolvedAliasError(f"value '{value}' is neither a valid clock ID nor a known alias")


def _resolve_at(path: str, value: str, alias_to_clock: Dict[str, str]) -> str:
    try:
        return resolve_clock_id(value, alias_to_clock)
    except UnresolvedAliasError as e:
        raise UnresolvedAliasError(f"{path}: {e}") from e


def resolve_clock_aliases(chain: ClockChain) -> ClockChain:
    """Return a copy of chain with every clock alias replaced by its clock ID.

    DPLL clock IDs are resolved first, then source clock IDs, then desired
    state clock IDs. The input document is left untouched on failure.
    """
    alias_to_clock = build_alias_map(chain.common_definitions)
    resolved = chain.model_copy(deep=True)

    for si, subsystem in enumerate(resolved.structure):
        if subsystem.dpll.clock_id:
            subsystem.dpll.clock_id = _resolve_at(
                f"structure[{si}].dpll.clockId", subsystem.dpll.clock_id, alias_to_clock
            )

    if resolved.behavior is None:
        return resolved

    for i, source in enumerate(resolved.behavior.sources or []):
        source.clock_id = _resolve_at(f"behavior.sources[{i}].clockId", source.clock_id, alias_to_clock)

    for ci, condition in enumerate(resolved.behavior.conditions or []):
        for di, desired_state in enumerate(condition.desired_states):
            if desired_state.clock_id is None:
                continue
            desired_state.clock_id = _resolve_at(
                f"behavior.conditions[{ci}].desiredStates[{di}].clockId",
                desired_state.clock_id,
                alias_to_clock,
            )

    if alias_to_clock:
        logger.info(f"Resolved clock aliases using {len(alias_to_clock)} identifier(s)")
    return resolved
