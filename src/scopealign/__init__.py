"""scopealign - Two-star mount alignment and sky/mount coordinate conversion."""

# Re-export subpackages for convenience
from scopealign import config, domain
from scopealign._version import __version__
from scopealign.session import AlignmentSession

__all__ = [
    "AlignmentSession",
    "__version__",
    "config",
    "domain",
]
