from __future__ import annotations

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Optional

from .command import CommandError, run_cmd

logger = logging.getLogger(__name__)


OCI_TAG = "latest"
ENTRYPOINT_REL = "etc/fsify-entrypoint"

_HEX_RE = re.compile(r"[0-9a-f]{64}")


def pull_image(image_ref: str, layout_dir: str) -> None:
    """Copy *image_ref* into an OCI layout, preferring the local Docker daemon."""

    dest = f"oci:{layout_dir}:{OCI_TAG}"
    try:
        run_cmd(["skopeo", "copy", f"docker-daemon:{image_ref}", dest])
        logger.info("Copied %s from local Docker daemon", image_ref)
        return
    except CommandError:
        logger.info("Local Docker daemon copy failed, trying remote registry")
    run_cmd(["skopeo", "copy", f"docker://{image_ref}", dest])


def unpack_image(layout_dir: str, unpacked_dir: str) -> None:
    run_cmd(["umoci", "unpack", "--image", f"{layout_dir}:{OCI_TAG}", unpacked_dir])


def find_config_blob(layout_dir: str) -> Optional[Path]:
    """Locate the image config blob of the first manifest in ``index.json``.

    Returns None when the layout carries no usable config.
    """

    layout = Path(layout_dir)
    digest = None
    try:
        index = json.loads((layout / "index.json").read_text(encoding="utf-8"))
        digest = index["manifests"][0]["config"]["digest"]
    except (OSError, ValueError, LookupError, TypeError):
        logger.debug("No config digest found in %s", layout / "index.json")

    if not isinstance(digest, str) or not digest.startswith("sha256:"):
        return None
    hexdigest = digest[len("sha256:"):]
    if not _HEX_RE.fullmatch(hexdigest):
        return None

    blob = layout / "blobs" / "sha256" / hexdigest
    return blob if blob.is_file() else None


def embed_config(layout_dir: str, rootfs_dir: str) -> Optional[Path]:
    """Copy the image config into ``<rootfs_dir>/etc/fsify-entrypoint``.

    Best effort: returns the written path, or None when there was nothing to
    embed or it could not be written.
    """

    blob = find_config_blob(layout_dir)
    if blob is None:
        logger.info("No OCI config available; skipping config embedding")
        return None

    out = Path(rootfs_dir) / ENTRYPOINT_REL
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(blob, out)
    except OSError as e:
        logger.warning("Could not embed OCI config at %s: %s", out, e)
        return None

    logger.info("Embedded OCI config %s -> %s", blob.name, out)
    return out
