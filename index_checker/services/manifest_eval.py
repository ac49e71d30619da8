"""
Evaluating a package's Nickel-pkg.ncl.

We shell out to the `nickel` CLI rather than interpreting the manifest
ourselves, so a manifest is accepted here exactly when nickel accepts it.

The whole manifest is evaluated first, which applies the package contract
to every field. Only the fields we cross-check are then exported: the
dependencies are enum variants, which have no JSON representation.
"""
from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

from pydantic import ValidationError

from index_checker.errors import ManifestEvalError
from index_checker.models import Manifest, PackageIdentity
from index_checker.utils.logging import logger

MANIFEST_NAME = "Nickel-pkg.ncl"
EXPORTED_FIELDS = ("name", "version")


def manifest_path(checkout: Path, ident: PackageIdentity) -> Path:
    """The manifest of `ident` inside a checkout of its repository."""
    root = Path(checkout)
    if ident.path:
        root = root.joinpath(*ident.path.split("/"))
    return root / MANIFEST_NAME


def _run_nickel(nickel: str, args: list[str], cwd: Path, timeout: int) -> str:
    cmd = [nickel, *args]
    logger.info("Evaluating manifest: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True,
                              timeout=timeout, check=False)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.error("Could not run %s: %s", nickel, e)
        raise ManifestEvalError(f"could not run {nickel}: {e}") from e

    if proc.returncode != 0:
        logger.warning("Manifest evaluation failed with exit code %d", proc.returncode)
        raise ManifestEvalError(proc.stderr.strip() or f"{nickel} exited with status {proc.returncode}")
    return proc.stdout


def evaluate_manifest(path: Path, timeout: int = 120) -> Manifest:
    path = Path(path)
    if not path.is_file():
        raise ManifestEvalError(f"{MANIFEST_NAME} not found in the package")

    nickel = os.environ.get("NICKEL_BIN", "nickel")
    _run_nickel(nickel, ["eval", str(path)], path.parent, timeout)

    fields = {}
    for field in EXPORTED_FIELDS:
        out = _run_nickel(nickel, ["export", "--format", "json", "--field", field, str(path)],
                          path.parent, timeout)
        try:
            fields[field] = json.loads(out)
        except ValueError as e:
            raise ManifestEvalError(f"unexpected output for manifest field {field}: {e}") from e

    try:
        return Manifest.model_validate(fields)
    except ValidationError as e:
        raise ManifestEvalError(f"unexpected manifest contents: {e}") from e
