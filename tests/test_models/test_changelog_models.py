"""Unit tests for chartkeeper.models.changelog."""

from __future__ import annotations

import pytest

from chartkeeper.models import ChangelogResult, RepositoryFile, RepositoryInfo


@pytest.mark.unit
class TestChangelogResult:
    """Invariants tying ``found`` to the payload fields."""

    def test_positive_with_changelog(self) -> None:
        result = ChangelogResult(source_url="s", found=True, changelog_text="text", changelog_url="u")

        assert result.has_changelog is True
        assert result.has_release_notes is False

    def test_positive_with_release_notes_only(self) -> None:
        result = ChangelogResult(source_url="s", found=True, release_notes="notes")
        assert result.has_release_notes is True

    def test_positive_without_payload_rejected(self) -> None:
        with pytest.raises(ValueError, match="needs changelog_text or release_notes"):
            ChangelogResult(source_url="s", found=True)

    @pytest.mark.parametrize(
        "field", ["changelog_text", "changelog_url", "release_notes", "release_notes_url"]
    )
    def test_negative_with_payload_rejected(self, field: str) -> None:
        with pytest.raises(ValueError, match="cannot carry changelog data"):
            ChangelogResult(source_url="s", found=False, **{field: "x"})

    def test_not_found(self) -> None:
        result = ChangelogResult.not_found("https://github.com/org/repo", "Changelog not found")

        assert result.found is False
        assert result.error == "Changelog not found"
        assert result.source_url == "https://github.com/org/repo"

    def test_frozen(self) -> None:
        result = ChangelogResult.not_found("s", "e")
        with pytest.raises(AttributeError):
            result.found = True  # type: ignore[misc]


@pytest.mark.unit
def test_repository_file_kind() -> None:
    assert RepositoryFile(name="CHANGELOG.md", path="CHANGELOG.md").is_file is True
    assert RepositoryFile(name="charts", path="charts", type="dir").is_file is False


@pytest.mark.unit
def test_repository_info() -> None:
    info = RepositoryInfo(platform="gitlab", owner="group", repo="project", url="u")
    assert info.is_known is True
    assert info.full_name == "group/project"
    assert RepositoryInfo(platform="unknown", owner="", repo="", url="u").is_known is False
