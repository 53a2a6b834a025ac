"""fsify: convert container images into mountable filesystem images.

Core design goals:
- Ordered, labelled steps that stop at the first failure
- Loop devices and mounts always released, even on SIGINT/SIGTERM
- Sparse or preallocated backing files sized from the rootfs
- Centralized logging of every external command
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
