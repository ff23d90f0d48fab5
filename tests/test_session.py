"""Tests for session.py - a mount is always committed or discarded, exactly once."""

from __future__ import annotations

import os
import shutil
import tempfile
from unittest.mock import Mock

import pytest

from conftest import FakeMounter
from winpe_wifi.discovery import ImageHandle
from winpe_wifi.errors import MountError, ResolutionError
from winpe_wifi.session import COMMITTED, DISCARDED, mounted, open_session, resolve


@pytest.fixture
def handle(image_file):
    return ImageHandle.from_path(image_file)


class TestMounted:
    def test_success_commits_once(self, handle, fake_mounter, mount_dir):
        with mounted(handle, mount_dir, mounter=fake_mounter) as session:
            (session.mount_root / "marker.txt").write_text("x")

        assert fake_mounter.names() == ["mount", "commit"]
        assert session.state == COMMITTED
        assert (fake_mounter.source / "marker.txt").exists()
        # A caller-supplied mount root is left in place.
        assert mount_dir.is_dir()

    def test_error_discards_once_and_reraises(self, handle, fake_mounter, mount_dir):
        with pytest.raises(ValueError, match="boom"):
            with mounted(handle, mount_dir, mounter=fake_mounter) as session:
                (session.mount_root / "marker.txt").write_text("x")
                raise ValueError("boom")

        assert fake_mounter.names() == ["mount", "discard"]
        assert session.state == DISCARDED
        assert not (fake_mounter.source / "marker.txt").exists()

    @pytest.mark.parametrize("fail", [False, True])
    def test_ephemeral_root_removed(self, handle, fake_mounter, fail):
        seen = {}

        def body():
            with mounted(handle, None, mounter=fake_mounter) as session:
                seen["root"] = session.mount_root
                assert session.ephemeral
                assert session.mount_root.is_dir()
                if fail:
                    raise RuntimeError("fail")

        if fail:
            with pytest.raises(RuntimeError):
                body()
        else:
            body()

        assert not seen["root"].exists()

    def test_discard_failure_does_not_mask_original_error(self, handle, pe_tree, mount_dir):
        mounter = FakeMounter(pe_tree, fail_discard=True)

        with pytest.raises(KeyError):
            with mounted(handle, mount_dir, mounter=mounter) as session:
                raise KeyError("original")

        assert mounter.names() == ["mount", "discard"]
        assert any("discard failed" in e for e in session.teardown_errors)

    def test_commit_failure_raises_resolution_error_without_discard(self, handle, pe_tree):
        mounter = FakeMounter(pe_tree, fail_commit=True)

        with pytest.raises(ResolutionError):
            with mounted(handle, None, mounter=mounter) as session:
                pass

        assert mounter.names() == ["mount", "commit"]
        # Still attached in the fake, so the temp root is reported rather than deleted.
        assert session.mount_root.exists()
        assert any("Could not remove" in e for e in session.teardown_errors)
        shutil.rmtree(session.mount_root)


class TestOpenSession:
    def test_mount_failure_removes_ephemeral_root(self, handle, pe_tree, mocker):
        created = []
        real_mkdtemp = tempfile.mkdtemp

        def spy(*args, **kwargs):
            created.append(real_mkdtemp(*args, **kwargs))
            return created[-1]

        mocker.patch("winpe_wifi.session.tempfile.mkdtemp", side_effect=spy)
        mounter = FakeMounter(pe_tree, fail_mount=True)

        with pytest.raises(MountError):
            open_session(handle, None, mounter=mounter)

        assert mounter.names() == ["mount"]
        assert len(created) == 1
        assert not os.path.exists(created[0])

    def test_interrupted_mount_removes_ephemeral_root(self, handle, mocker):
        created = []
        real_mkdtemp = tempfile.mkdtemp

        def spy(*args, **kwargs):
            created.append(real_mkdtemp(*args, **kwargs))
            return created[-1]

        mocker.patch("winpe_wifi.session.tempfile.mkdtemp", side_effect=spy)
        mounter = Mock()
        mounter.mount.side_effect = KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            open_session(handle, None, mounter=mounter)

        assert len(created) == 1
        assert not os.path.exists(created[0])

    def test_resolve_twice_rejected(self, handle, fake_mounter, mount_dir):
        session = open_session(handle, mount_dir, mounter=fake_mounter)
        resolve(session, success=True, mounter=fake_mounter)

        with pytest.raises(ResolutionError, match="already"):
            resolve(session, success=False, mounter=fake_mounter)
        assert fake_mounter.names() == ["mount", "commit"]
