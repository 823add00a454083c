# shared_libs/config_models/yaml_loader.py

from typing import Any, IO, Optional, Union

import yaml


class ScalarInt(int):
    """
    An int read from YAML that remembers how it was written.

    str() gives the source text, so "0123" and "0x112233" keep their
    spelling when a model field wants a string.
    """
    def __new__(cls, value: int, text: Optional[str] = None):
        obj = super().__new__(cls, value)
        obj.text = text
        return obj

    def __str__(self) -> str:
        return self.text if self.text is not None else int.__str__(self)

class SourceTextLoader(yaml.SafeLoader):
    pass

def _construct_int(loader: SourceTextLoader, node: yaml.ScalarNode) -> ScalarInt:
    value = loader.construct_yaml_int(node)
    return ScalarInt(value, node.value)

SourceTextLoader.add_constructor("tag:yaml.org,2002:int", _construct_int)

def load_yaml(stream: Union[str, IO[str]]) -> Any:
    """yaml.safe_load, with integers keeping their source text."""
    return yaml.load(stream, Loader=SourceTextLoader)
