from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import DiscoveryStall, OperatorAbort, ValidationError
from .prompts import Decider

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".wim"}


@dataclass(frozen=True)
class ImageHandle:
    path: Path
    index: int = 1

    @classmethod
    def from_path(cls, path: str | Path, index: int = 1) -> "ImageHandle":
        p = Path(path).expanduser()
        if not p.is_file():
            raise ValidationError(f"Image not found: {p}")
        if p.suffix.lower() not in IMAGE_SUFFIXES:
            raise ValidationError(f"Image must be a .wim file: {p}")
        if index < 1:
            raise ValidationError(f"Image index must be >= 1, got {index}")
        return cls(path=p.resolve(), index=index)


@dataclass(frozen=True)
class UsbCandidate:
    root: Path
    image_path: Path


@dataclass(frozen=True)
class DiscoveryRound:
    handle: Optional[ImageHandle] = None
    stall: Optional[DiscoveryStall] = None
    candidates: tuple = ()


def probe(roots: Sequence[Path], image_relpath: str) -> List[UsbCandidate]:
    found: List[UsbCandidate] = []
    for root in roots:
        p = Path(root) / image_relpath
        if p.is_file():
            found.append(UsbCandidate(root=Path(root), image_path=p))
    return found


def classify_round(roots: Sequence[Path], image_relpath: str, index: int = 1) -> DiscoveryRound:
    """Turn one enumeration of removable volumes into a handle or a stall."""

    if not roots:
        return DiscoveryRound(
            stall=DiscoveryStall(
                "no_media",
                f"No removable drive found. Connect the USB drive that holds {image_relpath}.",
            )
        )

    candidates = probe(roots, image_relpath)
    if not candidates:
        listed = ", ".join(str(r) for r in roots)
        return DiscoveryRound(
            stall=DiscoveryStall(
                "image_missing",
                f"{image_relpath} not found on removable drive(s) {listed}.",
            )
        )

    if len(candidates) > 1:
        listed = ", ".join(str(c.root) for c in candidates)
        return DiscoveryRound(
            stall=DiscoveryStall(
                "ambiguous",
                f"{len(candidates)} removable drives carry {image_relpath} ({listed}). "
                "Disconnect all but the one to customize.",
            ),
            candidates=tuple(candidates),
        )

    only = candidates[0]
    return DiscoveryRound(handle=ImageHandle(path=only.image_path, index=index), candidates=(only,))


def discover_image(
    *,
    enumerate_roots: Callable[[], Sequence[Path]],
    image_relpath: str,
    decider: Decider,
    interval_s: float = 5.0,
    index: int = 1,
    confirm: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> ImageHandle:
    """Poll removable media until exactly one volume carries the image.

    Stalls are retried without bound; only an operator decline ends the loop
    without a handle (OperatorAbort).
    """

    last_reason: Optional[str] = None
    while True:
        rnd = classify_round(enumerate_roots(), image_relpath, index)
        if rnd.handle is not None:
            if confirm and not decider.confirm(f"Customize {rnd.handle.path}?"):
                raise OperatorAbort(f"Operator declined image {rnd.handle.path}")
            logger.info("Using image %s", rnd.handle.path)
            return rnd.handle

        stall = rnd.stall
        if stall is None:
            raise RuntimeError("Discovery round produced neither an image nor a reason to wait")
        if stall.reason != last_reason:
            logger.warning("%s Retrying every %ss.", stall.message, interval_s)
        else:
            logger.debug("Still waiting: %s", stall.message)
        last_reason = stall.reason
        sleep(interval_s)
