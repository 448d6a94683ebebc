"""
Tests for the dependency resolver — closure, cycles, exclusions, rollback.
"""

import shutil
from pathlib import Path

import pytest

from winstage.adapters.mock import MockInspector
from winstage.core.errors import (
    CopyFailed,
    DependencyNotFound,
    MalformedArtifact,
    ResolutionError,
)
from winstage.core.exclusions import ExclusionSet
from winstage.core.services import resolver as resolver_module
from winstage.core.services.library_search import LibrarySearch
from winstage.core.services.resolver import DependencyResolver, resolve


def _staged(directory: Path) -> set[str]:
    return {p.name for p in directory.iterdir() if p.is_file()}


def _count_copies(monkeypatch) -> list[tuple[str, str]]:
    """Record every copy the resolver performs."""
    calls: list[tuple[str, str]] = []
    real_copy = shutil.copy2

    def spy(src, dst, *args, **kwargs):
        calls.append((Path(src).name, Path(dst).name))
        return real_copy(src, dst, *args, **kwargs)

    monkeypatch.setattr(resolver_module.shutil, "copy2", spy)
    return calls


# ── Closure ─────────────────────────────────────────────────────────


class TestClosure:
    """Tests for transitive closure completeness."""

    def test_copies_direct_dependencies(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll")
        add_library("libbar.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["libfoo.dll", "libbar.dll"]})

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe", "libfoo.dll", "libbar.dll"}
        assert report.copied == ["libfoo.dll", "libbar.dll"]
        assert report.target_dir == str(stage_dir)

    def test_copies_transitive_dependencies(self, system_root, stage_dir, add_library, make_subject):
        for name in ("libgtk.dll", "libglib.dll", "libintl.dll", "libiconv.dll"):
            add_library(name)
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["libgtk.dll"],
            "libgtk.dll": ["libglib.dll"],
            "libglib.dll": ["libintl.dll"],
            "libintl.dll": ["libiconv.dll"],
        })

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert report.copied == ["libgtk.dll", "libglib.dll", "libintl.dll", "libiconv.dll"]
        assert report.inspected == [
            "app.exe", "libgtk.dll", "libglib.dll", "libintl.dll", "libiconv.dll",
        ]

    def test_closure_is_complete_for_a_wide_graph(self, system_root, stage_dir, add_library, make_subject):
        graph = {
            "app.exe": ["a.dll", "b.dll", "KERNEL32.dll"],
            "a.dll": ["c.dll", "d.dll", "USER32.dll"],
            "b.dll": ["d.dll", "e.dll"],
            "d.dll": ["f.dll", "a.dll"],
            "e.dll": ["msvcrt.dll"],
        }
        for name in ("a.dll", "b.dll", "c.dll", "d.dll", "e.dll", "f.dll"):
            add_library(name)
        subject = make_subject()

        DependencyResolver(MockInspector(graph)).resolve(system_root, subject)

        assert _staged(stage_dir) == {
            "app.exe", "a.dll", "b.dll", "c.dll", "d.dll", "e.dll", "f.dll",
        }

    def test_depth_first_order(self, system_root, add_library, make_subject):
        for name in ("a.dll", "a1.dll", "b.dll"):
            add_library(name)
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["a.dll", "b.dll"], "a.dll": ["a1.dll"]})

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert report.copied == ["a.dll", "a1.dll", "b.dll"]

    def test_library_found_in_nested_directory(self, system_root, stage_dir, add_library, make_subject):
        add_library("libnested.dll", subdir="bin/plugins/extra")
        subject = make_subject()

        DependencyResolver(MockInspector({"app.exe": ["libnested.dll"]})).resolve(
            system_root, subject
        )

        assert (stage_dir / "libnested.dll").is_file()

    def test_lookup_is_case_insensitive(self, system_root, stage_dir, add_library, make_subject):
        source = add_library("libfoo.dll", content=b"payload")
        subject = make_subject()

        DependencyResolver(MockInspector({"app.exe": ["LIBFOO.DLL"]})).resolve(system_root, subject)

        # Staged under the declared name
        assert (stage_dir / "LIBFOO.DLL").read_bytes() == source.read_bytes()

    def test_custom_library_dir(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll", subdir="lib")
        subject = make_subject()

        DependencyResolver(
            MockInspector({"app.exe": ["libfoo.dll"]}), library_dir="lib"
        ).resolve(system_root, subject)

        assert (stage_dir / "libfoo.dll").is_file()

    def test_no_dependencies(self, system_root, stage_dir, make_subject):
        subject = make_subject()
        report = DependencyResolver(MockInspector()).resolve(system_root, subject)
        assert report.copied == []
        assert _staged(stage_dir) == {"app.exe"}

    def test_system_root_is_never_written(self, system_root, add_library, make_subject):
        add_library("libfoo.dll")
        add_library("libbar.dll")
        before = sorted(p.relative_to(system_root) for p in system_root.rglob("*"))
        subject = make_subject()

        DependencyResolver(
            MockInspector({"app.exe": ["libfoo.dll"], "libfoo.dll": ["libbar.dll"]})
        ).resolve(system_root, subject)

        after = sorted(p.relative_to(system_root) for p in system_root.rglob("*"))
        assert before == after

    def test_module_level_helper(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll")
        subject = make_subject()

        report = resolve(system_root, subject, MockInspector({"app.exe": ["libfoo.dll"]}))

        assert report.copy_count == 1
        assert report.duration_ms >= 0
        assert report.ended_at


# ── Cycles and memoization ──────────────────────────────────────────


class TestCyclesAndMemo:
    """Tests for cycle termination and the staged-file visited check."""

    def test_cycle_terminates_with_two_copies(self, system_root, stage_dir, add_library, make_subject, monkeypatch):
        add_library("libfoo")
        add_library("libbar")
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["libfoo"],
            "libfoo": ["libbar"],
            "libbar": ["libfoo"],
        })
        copies = _count_copies(monkeypatch)

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert copies == [("libfoo", "libfoo"), ("libbar", "libbar")]
        assert report.copied == ["libfoo", "libbar"]
        assert report.present == ["libfoo"]
        assert _staged(stage_dir) == {"app.exe", "libfoo", "libbar"}

    def test_each_library_inspected_once(self, system_root, add_library, make_subject):
        for name in ("a.dll", "b.dll", "c.dll"):
            add_library(name)
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["a.dll", "b.dll", "c.dll"],
            "a.dll": ["b.dll", "c.dll"],
            "b.dll": ["c.dll", "a.dll"],
            "c.dll": ["a.dll", "b.dll"],
        })

        DependencyResolver(inspector).resolve(system_root, subject)

        inspected = [p.name for p in inspector.call_log]
        assert sorted(inspected) == ["a.dll", "app.exe", "b.dll", "c.dll"]

    def test_self_import_is_harmless(self, system_root, add_library, make_subject):
        add_library("libself.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["libself.dll"], "libself.dll": ["libself.dll"]})

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert report.copied == ["libself.dll"]

    def test_second_run_copies_nothing(self, system_root, add_library, make_subject, monkeypatch):
        add_library("libfoo.dll")
        add_library("libbar.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["libfoo.dll"], "libfoo.dll": ["libbar.dll"]})
        resolver = DependencyResolver(inspector)
        resolver.resolve(system_root, subject)

        copies = _count_copies(monkeypatch)
        report = resolver.resolve(system_root, subject)

        assert copies == []
        assert report.copied == []
        assert report.present == ["libfoo.dll"]

    def test_preexisting_file_is_not_overwritten(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll", content=b"from sysroot")
        (stage_dir / "libfoo.dll").write_bytes(b"already here")
        subject = make_subject()

        DependencyResolver(MockInspector({"app.exe": ["libfoo.dll"]})).resolve(system_root, subject)

        assert (stage_dir / "libfoo.dll").read_bytes() == b"already here"

    def test_case_variant_counts_as_staged(self, system_root, stage_dir, add_library, make_subject, monkeypatch):
        add_library("libfoo.dll")
        add_library("libbar.dll")
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["libfoo.dll", "libbar.dll"],
            "libbar.dll": ["LIBFOO.DLL"],
        })
        copies = _count_copies(monkeypatch)

        report = DependencyResolver(inspector).resolve(system_root, subject)

        assert [dst for _, dst in copies] == ["libfoo.dll", "libbar.dll"]
        assert report.present == ["LIBFOO.DLL"]
        assert {p.name for p in stage_dir.iterdir()} == {"app.exe", "libfoo.dll", "libbar.dll"}
        assert [p.name for p in inspector.call_log] == ["app.exe", "libfoo.dll", "libbar.dll"]

    def test_dangling_symlink_is_never_written_through(
        self, tmp_path, system_root, stage_dir, add_library, make_subject
    ):
        add_library("libfoo.dll")
        outside = tmp_path / "outside" / "victim.dll"
        outside.parent.mkdir()
        (stage_dir / "libfoo.dll").symlink_to(outside)
        subject = make_subject()

        report = DependencyResolver(MockInspector({"app.exe": ["libfoo.dll"]})).resolve(
            system_root, subject
        )

        assert report.copied == []
        assert report.present == ["libfoo.dll"]
        assert not outside.exists()


# ── Exclusions ──────────────────────────────────────────────────────


class TestExclusions:
    """Tests for skipping OS-provided libraries."""

    def test_excluded_names_are_never_searched_or_copied(
        self, system_root, stage_dir, add_library, make_subject, monkeypatch
    ):
        add_library("KERNEL32.dll")
        add_library("libfoo.dll")
        subject = make_subject()
        searched: list[str] = []
        real_find = LibrarySearch.find

        def spy(self, name):
            searched.append(name)
            return real_find(self, name)

        monkeypatch.setattr(LibrarySearch, "find", spy)

        report = DependencyResolver(
            MockInspector({"app.exe": ["KERNEL32.dll", "libfoo.dll"]})
        ).resolve(system_root, subject)

        assert searched == ["libfoo.dll"]
        assert "KERNEL32.dll" not in _staged(stage_dir)
        assert report.excluded == ["KERNEL32.dll"]

    def test_excluded_names_in_transitive_imports(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll")
        add_library("user32.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["libfoo.dll"], "libfoo.dll": ["user32.dll"]})

        DependencyResolver(inspector).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe", "libfoo.dll"}

    def test_custom_exclusion_set(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo.dll")
        add_library("d3d11.dll")
        subject = make_subject()

        DependencyResolver(
            MockInspector({"app.exe": ["libfoo.dll", "d3d11.dll"]}),
            exclusions=ExclusionSet.with_extra(["d3d11"]),
        ).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe", "libfoo.dll"}

    def test_missing_excluded_library_is_fine(self, system_root, make_subject):
        subject = make_subject()
        report = DependencyResolver(
            MockInspector({"app.exe": ["KERNEL32.dll", "ole32.dll"]})
        ).resolve(system_root, subject)
        assert report.excluded == ["KERNEL32.dll", "ole32.dll"]


# ── Failures and rollback ───────────────────────────────────────────


class TestFailures:
    """Tests for missing and malformed dependencies and their rollback."""

    def test_missing_sibling_keeps_earlier_siblings(self, system_root, stage_dir, add_library, make_subject):
        add_library("libfoo")
        subject = make_subject("app.exe")
        inspector = MockInspector({"app.exe": ["KERNEL32", "libfoo", "libbar"]})

        with pytest.raises(DependencyNotFound) as exc_info:
            DependencyResolver(inspector).resolve(system_root, subject)

        err = exc_info.value
        assert err.name == "libbar"
        assert err.requested_by == "app.exe"
        assert str(err) == "libbar not found"
        assert "libfoo" in _staged(stage_dir)
        assert "libbar" not in _staged(stage_dir)

    def test_failed_branch_is_rolled_back(self, system_root, stage_dir, add_library, make_subject):
        add_library("libok.dll")
        add_library("libx.dll")
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["libok.dll", "libx.dll"],
            "libx.dll": ["liby.dll"],
        })

        with pytest.raises(DependencyNotFound) as exc_info:
            DependencyResolver(inspector).resolve(system_root, subject)

        assert exc_info.value.name == "liby.dll"
        assert exc_info.value.subject == stage_dir / "libx.dll"
        assert exc_info.value.retriable
        assert _staged(stage_dir) == {"app.exe", "libok.dll"}

    def test_rollback_unwinds_every_frame(self, system_root, stage_dir, add_library, make_subject):
        add_library("a.dll")
        add_library("b.dll")
        subject = make_subject()
        inspector = MockInspector({
            "app.exe": ["a.dll"],
            "a.dll": ["b.dll"],
            "b.dll": ["missing.dll"],
        })

        with pytest.raises(DependencyNotFound):
            DependencyResolver(inspector).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe"}

    def test_fully_resolved_children_of_failed_branch_stay(
        self, system_root, stage_dir, add_library, make_subject
    ):
        add_library("x.dll")
        add_library("y1.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["x.dll"], "x.dll": ["y1.dll", "y2.dll"]})

        with pytest.raises(DependencyNotFound):
            DependencyResolver(inspector).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe", "y1.dll"}

    def test_retry_after_fix_resolves_rolled_back_library(
        self, system_root, stage_dir, add_library, make_subject
    ):
        add_library("libx.dll")
        subject = make_subject()
        inspector = MockInspector({"app.exe": ["libx.dll"], "libx.dll": ["liby.dll"]})
        resolver = DependencyResolver(inspector)

        with pytest.raises(DependencyNotFound):
            resolver.resolve(system_root, subject)

        add_library("liby.dll")
        report = resolver.resolve(system_root, subject)

        assert report.copied == ["libx.dll", "liby.dll"]
        assert _staged(stage_dir) == {"app.exe", "libx.dll", "liby.dll"}

    def test_missing_library_dir_fails_every_lookup(self, tmp_path, make_subject):
        subject = make_subject()
        with pytest.raises(DependencyNotFound):
            DependencyResolver(MockInspector({"app.exe": ["libfoo.dll"]})).resolve(
                tmp_path / "nowhere", subject
            )

    def test_malformed_subject_fails_immediately(self, system_root, stage_dir, make_subject):
        subject = make_subject()
        inspector = MockInspector(malformed={"app.exe"})

        with pytest.raises(MalformedArtifact) as exc_info:
            DependencyResolver(inspector).resolve(system_root, subject)

        assert exc_info.value.path == subject
        assert _staged(stage_dir) == {"app.exe"}

    def test_malformed_dependency_is_rolled_back(self, system_root, stage_dir, add_library, make_subject):
        add_library("libok.dll")
        add_library("libbroken.dll")
        subject = make_subject()
        inspector = MockInspector(
            {"app.exe": ["libok.dll", "libbroken.dll"]}, malformed={"libbroken.dll"}
        )

        with pytest.raises(MalformedArtifact):
            DependencyResolver(inspector).resolve(system_root, subject)

        assert _staged(stage_dir) == {"app.exe", "libok.dll"}

    def test_errors_share_a_base_class(self, system_root, make_subject):
        subject = make_subject()
        with pytest.raises(ResolutionError):
            DependencyResolver(MockInspector({"app.exe": ["nope.dll"]})).resolve(
                system_root, subject
            )


class TestIOFailures:
    """Tests for copy and delete failures."""

    def test_copy_failure(self, system_root, stage_dir, add_library, make_subject, monkeypatch):
        add_library("libfoo.dll")
        subject = make_subject()

        def broken_copy(src, dst, *args, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(resolver_module.shutil, "copy2", broken_copy)

        with pytest.raises(CopyFailed) as exc_info:
            DependencyResolver(MockInspector({"app.exe": ["libfoo.dll"]})).resolve(
                system_root, subject
            )

        err = exc_info.value
        assert err.target == stage_dir / "libfoo.dll"
        assert isinstance(err.__cause__, OSError)
        assert "No space left" in str(err)

    def test_partial_copy_is_removed(self, system_root, stage_dir, add_library, make_subject, monkeypatch):
        add_library("libfoo.dll")
        subject = make_subject()

        def partial_copy(src, dst, *args, **kwargs):
            Path(dst).write_bytes(b"MZ trunc")
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(resolver_module.shutil, "copy2", partial_copy)

        with pytest.raises(CopyFailed) as exc_info:
            DependencyResolver(MockInspector({"app.exe": ["libfoo.dll"]})).resolve(
                system_root, subject
            )

        assert not (stage_dir / "libfoo.dll").exists()
        assert exc_info.value.retriable

    def test_failed_rollback_keeps_original_error(
        self, system_root, stage_dir, add_library, make_subject, monkeypatch
    ):
        add_library("libx.dll")
        subject = make_subject()
        real_unlink = Path.unlink

        def stubborn_unlink(self, missing_ok=False):
            if self.name == "libx.dll":
                raise PermissionError(13, "Permission denied")
            return real_unlink(self, missing_ok=missing_ok)

        monkeypatch.setattr(Path, "unlink", stubborn_unlink)

        with pytest.raises(DependencyNotFound) as exc_info:
            DependencyResolver(
                MockInspector({"app.exe": ["libx.dll"], "libx.dll": ["liby.dll"]})
            ).resolve(system_root, subject)

        err = exc_info.value
        assert err.name == "liby.dll"
        assert not err.retriable
        assert len(err.rollback_errors) == 1
        assert err.rollback_errors[0].path == stage_dir / "libx.dll"
        assert any("manual cleanup" in note for note in err.__notes__)
        # The half-processed library is still there
        assert (stage_dir / "libx.dll").exists()

    def test_failed_rollback_at_every_level_is_recorded(
        self, system_root, add_library, make_subject, monkeypatch
    ):
        add_library("a.dll")
        add_library("b.dll")
        subject = make_subject()

        def no_unlink(self, missing_ok=False):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "unlink", no_unlink)

        with pytest.raises(DependencyNotFound) as exc_info:
            DependencyResolver(
                MockInspector({"app.exe": ["a.dll"], "a.dll": ["b.dll"], "b.dll": ["c.dll"]})
            ).resolve(system_root, subject)

        assert [e.path.name for e in exc_info.value.rollback_errors] == ["b.dll", "a.dll"]
