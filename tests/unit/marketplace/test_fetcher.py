"""Unit tests for subtree fetchers."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx
from git import GitCommandError

from skillhub.errors import RemoteUnavailableError, SkillNotFoundError
from skillhub.marketplace.fetcher import GitSparseFetcher, RawDocumentFetcher
from tests.fixtures.skills import skill_markdown

DOCUMENT_URL = "https://raw.githubusercontent.com/acme/skills/dev/skills/pdf/SKILL.md"


@pytest.mark.unit
@pytest.mark.marketplace
class TestRawDocumentFetcher:
    """Test RawDocumentFetcher."""

    def test_document_url(self, team_source):
        """Should build the raw URL of the skill document."""
        fetcher = RawDocumentFetcher(client=MagicMock())

        assert fetcher.document_url(team_source, "/skills/pdf/", "dev") == DOCUMENT_URL
        assert fetcher.document_url(team_source, "", "main") == (
            "https://raw.githubusercontent.com/acme/skills/main/SKILL.md"
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_writes_document(self, team_source, tmp_path):
        """Should write the downloaded document into the destination."""
        respx.get(DOCUMENT_URL).respond(text=skill_markdown(name="pdf"))
        fetcher = RawDocumentFetcher()

        try:
            subtree = await fetcher.fetch_subtree(team_source, "skills/pdf", "dev", tmp_path / "out")
        finally:
            await fetcher.aclose()

        assert subtree == tmp_path / "out"
        assert "name: pdf" in (subtree / "SKILL.md").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_document(self, team_source, tmp_path):
        """Should raise SkillNotFoundError on 404."""
        respx.get(DOCUMENT_URL).respond(status_code=404)

        async with httpx.AsyncClient() as client:
            fetcher = RawDocumentFetcher(client=client)
            with pytest.raises(SkillNotFoundError):
                await fetcher.fetch_subtree(team_source, "skills/pdf", "dev", tmp_path)

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error(self, team_source, tmp_path):
        """Should raise RemoteUnavailableError on other failures."""
        respx.get(DOCUMENT_URL).respond(status_code=500)

        async with httpx.AsyncClient() as client:
            fetcher = RawDocumentFetcher(client=client)
            with pytest.raises(RemoteUnavailableError, match="HTTP 500"):
                await fetcher.fetch_subtree(team_source, "skills/pdf", "dev", tmp_path)

        assert not (tmp_path / "SKILL.md").exists()

    @pytest.mark.asyncio
    async def test_borrowed_client_not_closed(self):
        """Should leave a caller-owned client open."""
        client = MagicMock()
        fetcher = RawDocumentFetcher(client=client)

        await fetcher.aclose()

        client.aclose.assert_not_called()


@pytest.mark.unit
@pytest.mark.marketplace
class TestGitSparseFetcher:
    """Test GitSparseFetcher."""

    @pytest.fixture
    def mock_repo(self, tmp_path):
        repo = MagicMock()
        repo.git_dir = str(tmp_path / "checkout" / ".git")
        with patch("skillhub.marketplace.fetcher.Repo") as repo_cls:
            repo_cls.init.return_value = repo
            yield repo_cls, repo

    def test_remote_url(self, team_source):
        """Should build the clone URL from owner and repo."""
        assert GitSparseFetcher().remote_url(team_source) == "https://github.com/acme/skills.git"

    @pytest.mark.asyncio
    async def test_sparse_checkout(self, mock_repo, team_source, tmp_path):
        """Should fetch one branch shallowly and check out only the path."""
        repo_cls, repo = mock_repo
        dest = tmp_path / "checkout"
        repo.git.checkout.side_effect = lambda *args, **kwargs: (
            dest / "skills" / "pdf"
        ).mkdir(parents=True)

        subtree = await GitSparseFetcher(timeout=5).fetch_subtree(
            team_source, "/skills/pdf", "dev", dest
        )

        assert subtree == dest / "skills" / "pdf"
        repo_cls.init.assert_called_once_with(dest)
        repo.create_remote.assert_called_once_with("origin", "https://github.com/acme/skills.git")
        repo.git.fetch.assert_called_once_with(
            "--depth=1", "origin", "dev", kill_after_timeout=5
        )
        repo.git.checkout.assert_called_once_with(
            "-B", "dev", "FETCH_HEAD", kill_after_timeout=5
        )
        sparse_file = dest / ".git" / "info" / "sparse-checkout"
        assert sparse_file.read_text(encoding="utf-8") == "skills/pdf\n"
        repo.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_git_failure(self, mock_repo, team_source, tmp_path):
        """Should map git errors to RemoteUnavailableError and close the repo."""
        _, repo = mock_repo
        repo.git.fetch.side_effect = GitCommandError("fetch", 128)

        with pytest.raises(RemoteUnavailableError, match="acme/skills@main"):
            await GitSparseFetcher().fetch_subtree(
                team_source, "skills/pdf", "main", tmp_path / "checkout"
            )

        repo.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_path(self, mock_repo, team_source, tmp_path):
        """Should raise SkillNotFoundError when the path is absent on the branch."""
        with pytest.raises(SkillNotFoundError, match="skills/pdf"):
            await GitSparseFetcher().fetch_subtree(
                team_source, "skills/pdf", "main", tmp_path / "checkout"
            )
