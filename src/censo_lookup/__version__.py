"""censo-lookup version information."""
from __future__ import annotations


__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

# Component versions
COMPONENT_VERSIONS = {
    "balancer": "1.0.0",
    "cache": "1.0.0",
    "client": "1.0.0",
    "config": "1.0.0",
    "orchestrator": "1.0.0",
    "cli": "1.0.0",
}


def get_version_string() -> str:
    """Get formatted version string with all component info."""
    lines = [
        f"censo-lookup v{__version__}",
        "",
        "Component Versions:",
    ]

    for component, version in sorted(COMPONENT_VERSIONS.items()):
        lines.append(f"  {component:<15} {version}")

    return "\n".join(lines)
