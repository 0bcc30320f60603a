"""
Field patcher for BIOS dump images.

Applies find/replace rewrites to an in-memory copy of the image, then
persists the result with a single write after taking a backup.
"""

import hashlib
import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .bios_dump import FieldPatch
from .config import BACKUP_ROOT
from .pattern_matcher import find_all

logger = logging.getLogger(__name__)


class PatchError(Exception):
    """Base exception for patch operations."""


class PatternNotFound(PatchError):
    """The search pattern does not occur in the image."""


@dataclass
class PatchReport:
    """
    Outcome of applying a set of patches.

    Attributes:
        data: The patched image
        offsets: Offsets rewritten, keyed by FieldPatch.field
    """
    data: bytes
    offsets: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def total_replacements(self) -> int:
        return sum(len(v) for v in self.offsets.values())


def replace_occurrences(buffer: bytes, find: bytes, replace: bytes) -> Tuple[bytes, List[int]]:
    """
    Overwrite every occurrence of find with replace.

    Occurrences are located against the original buffer before any write. At
    each offset min(len(replace), bytes remaining) bytes are written; if
    replace is shorter than find the rest of the occurrence is left as is.

    Returns:
        Tuple of (patched bytes, offsets rewritten)
    """
    offsets = list(find_all(buffer, find))
    out = bytearray(buffer)
    for offset in offsets:
        count = min(len(replace), len(out) - offset)
        out[offset:offset + count] = replace[:count]
    return bytes(out), offsets


class FieldPatcher:
    """Rewrite dump fields in memory and persist them safely."""

    def __init__(self, backup_dir: Optional[Path] = None):
        """
        Initialize patcher.

        Args:
            backup_dir: Directory for backups (default: ./backups/<timestamp>/)
        """
        if backup_dir is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_dir = BACKUP_ROOT / timestamp

        self.backup_dir = Path(backup_dir)

    def replace(
        self,
        buffer: bytes,
        find: bytes,
        replace: bytes,
        require_match: bool = True,
    ) -> bytes:
        """
        Replace every occurrence of find in buffer.

        Raises:
            InvalidPattern: If find is empty
            PatternNotFound: If require_match and find does not occur
        """
        patched, offsets = replace_occurrences(buffer, find, replace)
        if not offsets and require_match:
            raise PatternNotFound(f"Pattern {find.hex().upper()} not found in image")
        logger.debug(
            f"Replaced {find.hex().upper()} -> {replace.hex().upper()} "
            f"at {len(offsets)} offset(s)"
        )
        return patched

    def apply(
        self,
        buffer: bytes,
        patches: Sequence[FieldPatch],
        require_any: bool = True,
    ) -> PatchReport:
        """
        Apply patches in order to one in-memory copy of the image.

        Each patch scans the buffer as left by the previous patch. Patches that
        match nothing are skipped.

        Raises:
            PatternNotFound: If require_any and no patch matched at all
        """
        data = bytes(buffer)
        report = PatchReport(data=data)
        for patch in patches:
            data, offsets = replace_occurrences(data, patch.find, patch.replace)
            report.offsets[patch.field] = offsets
            if offsets:
                logger.info(
                    f"{patch.field}: rewrote {len(offsets)} occurrence(s) at "
                    + ", ".join(f"0x{o:06X}" for o in offsets)
                )
            else:
                logger.debug(f"{patch.field}: no occurrences")

        report.data = data
        if require_any and report.total_replacements == 0:
            fields = ", ".join(p.field for p in patches) or "(none)"
            raise PatternNotFound(f"No patch pattern found in image ({fields})")
        return report

    def backup_image(self, image_path: Union[str, Path]) -> Path:
        """
        Create backup of the full image before modification.

        Args:
            image_path: Path to dump file

        Returns:
            Path to backup file
        """
        src = Path(image_path)
        if not src.exists():
            raise FileNotFoundError(f"{src} not found")

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        dst = self.backup_dir / f"full_{src.name}"
        shutil.copy2(src, dst)

        logger.info(f"Backed up full image: {dst}")
        return dst

    def write_image(
        self,
        image_path: Union[str, Path],
        data: bytes,
        verify: bool = True,
    ) -> Dict:
        """
        Write the whole patched image back in a single write.

        Args:
            image_path: Path to dump file (overwritten)
            data: Complete patched image
            verify: Read the file back and compare

        Returns:
            Dict with write info:
                - path: File written
                - length: Bytes written
                - before_hash: SHA256 of the file before writing ("" if new)
                - after_hash: SHA256 of the written data
                - verified: True if readback matched (False if not checked)

        Raises:
            IOError: If readback differs from data
        """
        img_path = Path(image_path)
        before_hash = ""
        if img_path.exists():
            before_hash = hashlib.sha256(img_path.read_bytes()).hexdigest()

        logger.warning(f"WRITING IMAGE: {img_path} ({len(data):,} bytes)")
        img_path.write_bytes(data)

        verified = False
        if verify:
            readback = img_path.read_bytes()
            if readback != data:
                raise IOError(f"Verification FAILED for {img_path}: readback differs")
            verified = True
            logger.debug(f"Write verified: {img_path}")

        after_hash = hashlib.sha256(data).hexdigest()
        logger.info(f"Image written: {img_path}")
        logger.info(f"  After hash: {after_hash}")

        return {
            "path": str(img_path),
            "length": len(data),
            "before_hash": before_hash,
            "after_hash": after_hash,
            "verified": verified,
        }
