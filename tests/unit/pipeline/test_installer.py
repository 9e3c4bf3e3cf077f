"""Unit tests for tooldeps/pipeline/installer.py - install/reinstall decisions."""

import json
from pathlib import Path

import pytest

from tests.fakes import FakePackageManager
from tooldeps.core.errors import (
    InstallError,
    LockTimeoutError,
    MissingToolDependenciesError,
    PackageManagerNotFoundError,
)
from tooldeps.core.models import Descriptor, InstallOutcome, Manifest
from tooldeps.infra.cache_store import CacheStore
from tooldeps.infra.tools.locking import LockManager, LockPolicy
from tooldeps.pipeline.installer import Installer


def make_descriptor(tools: dict[str, str] | None, name: str = "proj") -> Descriptor:
    document: dict = {"name": name, "scripts": {"postinstall": "evil"}}
    if tools is not None:
        document["tool-dependencies"] = tools
    return Descriptor(path=Path("/proj/package.json"), document=document)


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def pm() -> FakePackageManager:
    return FakePackageManager()


@pytest.fixture
def installer(store: CacheStore, pm: FakePackageManager) -> Installer:
    lock_manager = LockManager(LockPolicy(wait_seconds=1, poll_seconds=0.05))
    return Installer(store, pm, lock_manager)


class TestEnsureInstalled:
    def test_first_run_installs(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        outcome = installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))

        assert outcome is InstallOutcome.FRESH_INSTALL
        assert len(pm.install_calls) == 1
        assert pm.install_calls[0].cache_dir == store.cache_dir("proj")
        manifest = store.read_manifest("proj")
        assert manifest is not None
        assert manifest.dependencies == {"lint": "1.0.0"}
        assert manifest.document["scripts"] == {}

    def test_second_run_is_noop(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)

        outcome = installer.ensure_installed(descriptor)

        assert outcome is InstallOutcome.UP_TO_DATE
        assert outcome.installed is False
        assert len(pm.install_calls) == 1

    def test_changed_constraint_reinstalls(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))

        outcome = installer.ensure_installed(make_descriptor({"lint": "2.0.0"}))

        assert outcome is InstallOutcome.REINSTALLED
        assert len(pm.install_calls) == 2
        assert store.read_manifest("proj").dependencies == {"lint": "2.0.0"}

    def test_removed_tool_reinstalls(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        installer.ensure_installed(make_descriptor({"lint": "1", "fmt": "1"}))
        outcome = installer.ensure_installed(make_descriptor({"lint": "1"}))
        assert outcome is InstallOutcome.REINSTALLED

    def test_empty_declared_set_installs_once(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({})
        assert installer.ensure_installed(descriptor) is InstallOutcome.FRESH_INSTALL
        assert installer.ensure_installed(descriptor) is InstallOutcome.UP_TO_DATE
        assert len(pm.install_calls) == 1

    def test_missing_tool_dependencies(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        with pytest.raises(MissingToolDependenciesError):
            installer.ensure_installed(make_descriptor(None))
        assert pm.calls == []

    def test_failure_invalidates_then_next_run_installs_fresh(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        pm.exit_codes["install"] = 1

        with pytest.raises(InstallError) as exc_info:
            installer.ensure_installed(descriptor)

        assert exc_info.value.returncode == 1
        assert str(exc_info.value) == "npm install exited non-zero 1"
        assert store.read_manifest("proj") is None

        pm.exit_codes["install"] = 0
        assert installer.ensure_installed(descriptor) is InstallOutcome.FRESH_INSTALL
        assert len(pm.install_calls) == 2

    def test_failed_reinstall_does_not_leave_new_manifest(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        pm.exit_codes["install"] = 2

        with pytest.raises(InstallError):
            installer.ensure_installed(make_descriptor({"lint": "2.0.0"}))

        assert store.exists("proj") is False

    def test_missing_package_manager_invalidates(
        self, store: CacheStore, installer: Installer
    ) -> None:
        class MissingPackageManager(FakePackageManager):
            def install(self, cache_dir, packages=None):  # noqa: ANN001, ANN202
                raise PackageManagerNotFoundError("npm")

        installer.package_manager = MissingPackageManager()
        with pytest.raises(PackageManagerNotFoundError):
            installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        assert store.exists("proj") is False

    def test_corrupt_manifest_treated_as_absent(
        self, installer: Installer, store: CacheStore
    ) -> None:
        store.ensure_dir("proj")
        store.manifest_path("proj").write_text("{broken")
        outcome = installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        assert outcome is InstallOutcome.FRESH_INSTALL

    def test_lock_released_after_install(
        self, installer: Installer, store: CacheStore
    ) -> None:
        installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        assert not store.lock_path("proj").exists()

    def test_lock_released_after_failure(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        pm.exit_codes["install"] = 1
        with pytest.raises(InstallError):
            installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        assert not store.lock_path("proj").exists()

    def test_held_lock_times_out_without_installing(
        self, store: CacheStore, pm: FakePackageManager
    ) -> None:
        store.ensure_dir("proj")
        LockManager(holder_id="other:1").try_acquire(store.lock_path("proj"))
        installer = Installer(
            store, pm, LockManager(LockPolicy(wait_seconds=0, poll_seconds=0.01))
        )

        with pytest.raises(LockTimeoutError):
            installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))
        assert pm.calls == []

    def test_stale_lock_is_reclaimed(
        self, store: CacheStore, pm: FakePackageManager
    ) -> None:
        store.ensure_dir("proj")
        LockManager(holder_id="dead:1", clock=lambda: 0.0).try_acquire(
            store.lock_path("proj")
        )
        installer = Installer(
            store, pm, LockManager(LockPolicy(wait_seconds=0, poll_seconds=0.01))
        )

        outcome = installer.ensure_installed(make_descriptor({"lint": "1.0.0"}))

        assert outcome is InstallOutcome.FRESH_INSTALL


class TestAddRemove:
    def test_add_to_project_without_tools(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        deps = installer.add(make_descriptor(None), ["lint@1.2.3"])
        assert deps == {"lint": "1.2.3"}
        assert pm.install_calls[0].args == ["lint@1.2.3"]

    def test_add_keeps_existing_tools(
        self, installer: Installer, store: CacheStore
    ) -> None:
        descriptor = make_descriptor({"fmt": "1.0.0"})
        installer.ensure_installed(descriptor)
        deps = installer.add(descriptor, ["lint@2.0.0"])
        assert deps == {"fmt": "1.0.0", "lint": "2.0.0"}

    def test_added_set_is_up_to_date_afterwards(self, installer: Installer) -> None:
        deps = installer.add(make_descriptor({}), ["lint@1.0.0"])
        descriptor = make_descriptor(deps)
        assert installer.ensure_installed(descriptor) is InstallOutcome.UP_TO_DATE

    def test_remove(self, installer: Installer) -> None:
        descriptor = make_descriptor({"fmt": "1.0.0", "lint": "2.0.0"})
        installer.ensure_installed(descriptor)
        assert installer.remove(descriptor, ["lint"]) == {"fmt": "1.0.0"}

    def test_remove_requires_tool_dependencies(self, installer: Installer) -> None:
        with pytest.raises(MissingToolDependenciesError):
            installer.remove(make_descriptor(None), ["lint"])

    def test_failed_add_invalidates(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"fmt": "1.0.0"})
        installer.ensure_installed(descriptor)
        pm.exit_codes["install"] = 1

        with pytest.raises(InstallError):
            installer.add(descriptor, ["nope@9"])

        assert store.exists("proj") is False


class TestListAndIntegrity:
    def test_list_returns_exit_code(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)
        assert installer.list_installed(descriptor, ["--depth", "0"]) == 0
        assert pm.calls[-1].args == ["--depth", "0"]

    def test_failed_list_invalidates(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)
        pm.exit_codes["ls"] = 1

        assert installer.list_installed(descriptor, []) == 1
        assert store.exists("proj") is False

    def test_integrity_ok(self, installer: Installer, store: CacheStore) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)
        assert installer.verify_integrity(descriptor) is True
        assert store.exists("proj")

    def test_integrity_failure_invalidates(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)
        pm.exit_codes["ls"] = 1

        assert installer.verify_integrity(descriptor) is False
        assert store.exists("proj") is False
        assert installer.ensure_installed(descriptor) is InstallOutcome.FRESH_INSTALL

    def test_integrity_without_cache(
        self, installer: Installer, pm: FakePackageManager
    ) -> None:
        assert installer.verify_integrity(make_descriptor({"lint": "1"})) is None
        assert pm.calls == []


class TestClean:
    def test_clean_then_reinstall(
        self, installer: Installer, store: CacheStore, pm: FakePackageManager
    ) -> None:
        descriptor = make_descriptor({"lint": "1.0.0"})
        installer.ensure_installed(descriptor)

        assert installer.clean(descriptor) is True
        assert not store.cache_dir("proj").exists()
        assert installer.clean(descriptor) is False
        assert installer.ensure_installed(descriptor) is InstallOutcome.FRESH_INSTALL


class TestManifestContent:
    def test_manifest_is_valid_json_on_disk(
        self, installer: Installer, store: CacheStore
    ) -> None:
        installer.ensure_installed(make_descriptor({"@org/lint": "1.0.0"}))
        document = json.loads(store.manifest_path("proj").read_text())
        assert document["dependencies"] == {"@org/lint": "1.0.0"}
        assert Manifest(document).dependencies == {"@org/lint": "1.0.0"}
