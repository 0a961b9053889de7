"""
updaters - One updater per dependency ecosystem.

- bun: npm packages (git diff of package.json, bun log fallback)
- devenv: Nix flake inputs (devenv.lock snapshots, optional dix diff)
- nixpkgs: overlay sources (nvfetcher generated.json snapshots)
"""

from .bun import update_bun_dependencies
from .devenv import update_devenv
from .nixpkgs import update_nixpkgs_overlay

__all__ = [
    "update_bun_dependencies",
    "update_devenv",
    "update_nixpkgs_overlay",
]
