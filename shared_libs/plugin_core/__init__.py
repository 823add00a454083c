"""Hardware plugin support for clock-chain configurations.

Modules:
- registry_loader: Load plugin documents from a directory into a read-only registry
"""

__all__ = [
	"registry_loader",
]
