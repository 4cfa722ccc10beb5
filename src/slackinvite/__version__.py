
__author__ = "Jérémie Lumbroso <lumbroso@cs.princeton.edu>"

__all__ = [
    "__version__",
    "version_info",
]


__version__ = "0.1.0"

version_info = tuple(map(int, __version__.split(".")))
