from .step_10_pull_image import PullImageStep
from .step_20_unpack_image import UnpackImageStep
from .step_30_embed_config import EmbedConfigStep
from .step_40_create_image import CreateImageStep
from .step_50_format_fs import FormatFilesystemStep
from .step_60_mount_image import MountImageStep
from .step_70_copy_rootfs import CopyRootfsStep
from .step_80_unmount_image import UnmountImageStep
from .step_90_create_squashfs import CreateSquashfsStep

__all__ = [
    "PullImageStep",
    "UnpackImageStep",
    "EmbedConfigStep",
    "CreateImageStep",
    "FormatFilesystemStep",
    "MountImageStep",
    "CopyRootfsStep",
    "UnmountImageStep",
    "CreateSquashfsStep",
]
