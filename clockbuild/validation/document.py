import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from shared_libs.config_models.clock_chain_models import ClockChain
from shared_libs.config_models.errors import DecodeError, describe_pydantic_error
from shared_libs.config_models.yaml_loader import load_yaml

logger = logging.getLogger(__name__)


class ClockChainLoader:
    """Reads a clock-chain YAML file and returns a ClockChain model."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    def load(self) -> ClockChain:
        logger.info(f"Loading clock chain configuration: {self.file_path}")
        if not self.file_path.is_file():
            raise DecodeError("configuration file not found", source=str(self.file_path))
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise DecodeError(f"error reading file: {e}", source=str(self.file_path)) from e
        return parse_clock_chain(text, source=str(self.file_path))


def parse_clock_chain(text: str, source: Optional[str] = None) -> ClockChain:
    try:
        loaded_data: Any = load_yaml(text)
    except yaml.YAMLError as e:
        raise DecodeError(f"error parsing YAML: {e}", source=source) from e

    if loaded_data is None:
        raise DecodeError("YAML document is empty", source=source)
    if not isinstance(loaded_data, dict):
        raise DecodeError("top level of the document must be a mapping", source=source)

    try:
        chain = ClockChain.model_validate(loaded_data)
    except ValidationError as e:
        raise DecodeError(describe_pydantic_error(e), source=source) from e

    logger.debug(f"Decoded {len(chain.structure)} subsystem(s) from {source or '<string>'}")
    return chain
