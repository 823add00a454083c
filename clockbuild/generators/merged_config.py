import logging
from pathlib import Path
from typing import List

import yaml

from shared_libs.config_models.clock_chain_models import ClockChain, Subsystem

logger = logging.getLogger(__name__)


def render_yaml(chain: ClockChain) -> str:
    return yaml.safe_dump(chain.to_document(), sort_keys=False, default_flow_style=False, allow_unicode=True)


def write_yaml(file_path: Path, chain: ClockChain) -> None:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(render_yaml(chain))
    logger.info(f"Wrote merged configuration to {file_path}")


def describe_subsystem(subsystem: Subsystem) -> str:
    plugin = subsystem.hardware_plugin or "default"
    return (
        f"Subsystem {subsystem.name} (Plugin: {plugin}, Clock ID: {subsystem.dpll.clock_id or ''}, "
        f"Ethernet Ports: {len(subsystem.ethernet)})"
    )


def summary_lines(chain: ClockChain) -> List[str]:
    """Human-readable overview of a chain, one line per fact."""
    lines = ["Clock Chain Configuration:", f"  Subsystems: {len(chain.structure)}"]
    if chain.common_definitions is not None:
        lines.append(f"  eSync Definitions: {len(chain.common_definitions.esync_definitions or [])}")
    if chain.behavior is not None:
        lines.append(f"  Sources: {len(chain.behavior.sources or [])}")
        lines.append(f"  Conditions: {len(chain.behavior.conditions or [])}")
    for i, subsystem in enumerate(chain.structure, start=1):
        lines.append(f"  {i}. {describe_subsystem(subsystem)}")
    return lines
