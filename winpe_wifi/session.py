from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from .discovery import ImageHandle
from .errors import MountError, ResolutionError
from .lib.wim import ImageMounter

logger = logging.getLogger(__name__)

OPEN = "open"
COMMITTED = "committed"
DISCARDED = "discarded"
RESOLUTION_FAILED = "resolution_failed"

EPHEMERAL_PREFIX = "winpe-wifi-mount-"


@dataclass
class MountSession:
    image: ImageHandle
    mount_root: Path
    ephemeral: bool
    state: str = OPEN
    teardown_errors: List[str] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.state == OPEN


def _remove_ephemeral_root(session: MountSession) -> None:
    if not session.ephemeral:
        return
    try:
        # rmdir, not rmtree: a root that is still mounted must never be emptied.
        session.mount_root.rmdir()
        logger.info("Removed temporary mount root %s", str(session.mount_root))
    except FileNotFoundError:
        pass
    except OSError as e:
        msg = f"Could not remove temporary mount root {session.mount_root}: {e}"
        session.teardown_errors.append(msg)
        logger.error(msg)


def open_session(
    image: ImageHandle,
    mount_root: Optional[str | Path] = None,
    *,
    mounter: ImageMounter,
) -> MountSession:
    ephemeral = mount_root is None
    root = Path(tempfile.mkdtemp(prefix=EPHEMERAL_PREFIX)) if ephemeral else Path(mount_root)
    session = MountSession(image=image, mount_root=root, ephemeral=ephemeral)

    logger.info("Mounting %s (index %s) at %s", str(image.path), image.index, str(root))
    try:
        mounter.mount(image.path, root, image.index)
    except BaseException as e:
        session.state = DISCARDED
        _remove_ephemeral_root(session)
        if isinstance(e, MountError) or not isinstance(e, Exception):
            raise
        raise MountError(f"Unable to mount {image.path}: {e}") from e
    return session


def resolve(session: MountSession, *, success: bool, mounter: ImageMounter) -> None:
    """Commit (success) or discard the session, then drop an ephemeral root.

    Exactly one of commit/discard is attempted. Root removal runs even when
    that call fails.
    """

    if not session.is_open:
        raise ResolutionError(f"Session for {session.mount_root} already {session.state}")

    try:
        if success:
            logger.info("Saving changes to %s", str(session.image.path))
            mounter.commit(session.mount_root)
            session.state = COMMITTED
        else:
            logger.warning("Discarding changes to %s", str(session.image.path))
            mounter.discard(session.mount_root)
            session.state = DISCARDED
    except Exception as e:
        session.state = RESOLUTION_FAILED
        if isinstance(e, ResolutionError):
            raise
        raise ResolutionError(f"{'Commit' if success else 'Discard'} of {session.mount_root} failed: {e}") from e
    finally:
        _remove_ephemeral_root(session)


@contextmanager
def mounted(
    image: ImageHandle,
    mount_root: Optional[str | Path] = None,
    *,
    mounter: ImageMounter,
) -> Iterator[MountSession]:
    """Mount ``image`` for the duration of the block.

    Normal exit commits. Any exception discards and is re-raised unchanged; a
    failing discard is logged and recorded on the session instead of replacing it.
    """

    session = open_session(image, mount_root, mounter=mounter)
    try:
        yield session
    except BaseException:
        try:
            resolve(session, success=False, mounter=mounter)
        except ResolutionError as cleanup_error:
            session.teardown_errors.append(str(cleanup_error))
            logger.error("Cleanup after failure also failed: %s", cleanup_error)
        raise
    resolve(session, success=True, mounter=mounter)
