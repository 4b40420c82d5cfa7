"""Unit tests for the GitHub source resolver."""

import httpx
import pytest
import respx

from skillhub.errors import RemoteUnavailableError
from skillhub.marketplace.models import SEARCH_API_SOURCE, MarketplaceSource
from skillhub.marketplace.resolver import SourceResolver, contents_url, raw_url
from tests.fixtures.skills import skill_markdown

INDEX_URL = "https://raw.githubusercontent.com/acme/skills/main/skills/skills-index.json"
CONTENTS_URL = "https://api.github.com/repos/acme/skills/contents/skills?ref=main"
RAW_BASE = "https://raw.githubusercontent.com/acme/skills/main/skills"


def _dir(name: str) -> dict:
    return {"name": name, "path": f"skills/{name}", "type": "dir"}


def _mock_listing(names: list[str], missing: tuple[str, ...] = ()) -> respx.Route:
    respx.get(INDEX_URL).mock(return_value=httpx.Response(404))
    readme = {"name": "README.md", "path": "skills/README.md", "type": "file"}
    route = respx.get(CONTENTS_URL).mock(
        return_value=httpx.Response(200, json=[*(_dir(n) for n in names), readme])
    )
    for name in names:
        if name in missing:
            respx.get(f"{RAW_BASE}/{name}/SKILL.md").mock(return_value=httpx.Response(404))
        else:
            respx.get(f"{RAW_BASE}/{name}/SKILL.md").mock(
                return_value=httpx.Response(200, text=skill_markdown(name=name, version="1.0"))
            )
    return route


@pytest.mark.unit
@pytest.mark.marketplace
class TestUrls:
    """Test URL helpers."""

    def test_raw_url(self, team_source):
        """Should build raw-content URLs on the source branch."""
        assert raw_url(team_source, "skills/pdf/SKILL.md") == f"{RAW_BASE}/pdf/SKILL.md"

    def test_contents_url(self, team_source):
        """Should build the contents API URL with the branch as ref."""
        assert contents_url(team_source) == CONTENTS_URL


@pytest.mark.unit
@pytest.mark.marketplace
class TestListSource:
    """Test SourceResolver.list_source."""

    @pytest.mark.asyncio
    @respx.mock(assert_all_called=False)
    async def test_index_strategy(self, cache, team_source, respx_mock):
        """Should accept a valid index verbatim in a single request."""
        respx_mock.get(INDEX_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "skills": [
                        {
                            "name": "pdf",
                            "description": "PDF tools",
                            "path": "skills/pdf",
                            "version": "2.0",
                            "author": "acme",
                            "tags": ["documents"],
                        }
                    ]
                },
            )
        )
        contents = respx_mock.get(CONTENTS_URL).mock(return_value=httpx.Response(200, json=[]))

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == ["pdf"]
        assert skills[0].version == "2.0"
        assert skills[0].tags == ["documents"]
        assert skills[0].source.id == "team"
        assert not contents.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_directory_fallback(self, cache, team_source):
        """Should list directories and read each SKILL.md when no index exists."""
        _mock_listing(["docx", "pdf"])

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == ["docx", "pdf"]
        assert skills[1].path == "skills/pdf"
        assert skills[1].version == "1.0"
        assert skills[1].author == "acme"

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_index_falls_back(self, cache, team_source):
        """Should ignore an index that does not match the schema."""
        respx.get(INDEX_URL).mock(return_value=httpx.Response(200, json={"entries": []}))
        respx.get(CONTENTS_URL).mock(return_value=httpx.Response(200, json=[_dir("pdf")]))
        respx.get(f"{RAW_BASE}/pdf/SKILL.md").mock(
            return_value=httpx.Response(200, text=skill_markdown(name="pdf"))
        )

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == ["pdf"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreadable_entries_dropped(self, cache, team_source):
        """Should drop entries whose document cannot be fetched or parsed."""
        _mock_listing(["docx", "pdf"], missing=("docx",))

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == ["pdf"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_name_falls_back_to_directory(self, cache, team_source):
        """Should use the directory name when the document has no name."""
        respx.get(INDEX_URL).mock(return_value=httpx.Response(404))
        respx.get(CONTENTS_URL).mock(return_value=httpx.Response(200, json=[_dir("unnamed")]))
        respx.get(f"{RAW_BASE}/unnamed/SKILL.md").mock(
            return_value=httpx.Response(200, text="---\ndescription: No name here\n---\nBody")
        )

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert skills[0].name == "unnamed"
        assert skills[0].description == "No name here"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_string_name_dropped(self, cache, team_source):
        """Should drop a document whose name is a map and keep the rest."""
        respx.get(INDEX_URL).mock(return_value=httpx.Response(404))
        respx.get(CONTENTS_URL).mock(
            return_value=httpx.Response(200, json=[_dir("bad"), _dir("pdf")])
        )
        respx.get(f"{RAW_BASE}/bad/SKILL.md").mock(
            return_value=httpx.Response(
                200,
                text="---\nname:\n  first: x\ndescription: Bad\n---\nBody",
            )
        )
        respx.get(f"{RAW_BASE}/pdf/SKILL.md").mock(
            return_value=httpx.Response(200, text=skill_markdown(name="pdf"))
        )

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_all([team_source])

        assert [s.name for s in skills] == ["pdf"]

    @pytest.mark.asyncio
    @respx.mock(assert_all_called=False)
    async def test_index_numeric_version(self, cache, team_source, respx_mock):
        """Should keep an index whose version is a number, as a string."""
        respx_mock.get(INDEX_URL).mock(
            return_value=httpx.Response(
                200,
                json={"skills": [{"name": "pdf", "path": "skills/pdf", "version": 2}]},
            )
        )
        contents = respx_mock.get(CONTENTS_URL).mock(return_value=httpx.Response(500))

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == ["pdf"]
        assert skills[0].version == "2"
        assert not contents.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_batches_preserve_order(self, cache, team_source):
        """Should fetch more entries than one batch and keep listing order."""
        names = [f"skill-{i:02d}" for i in range(23)]
        _mock_listing(names)

        async with SourceResolver(cache, batch_size=10) as resolver:
            skills = await resolver.list_source(team_source)

        assert [s.name for s in skills] == names

    @pytest.mark.asyncio
    @respx.mock
    async def test_listing_failure_raises(self, cache, team_source):
        """Should raise RemoteUnavailableError when the listing fails."""
        respx.get(INDEX_URL).mock(return_value=httpx.Response(404))
        respx.get(CONTENTS_URL).mock(return_value=httpx.Response(500))

        async with SourceResolver(cache) as resolver:
            with pytest.raises(RemoteUnavailableError, match="HTTP 500"):
                await resolver.list_source(team_source)

    @pytest.mark.asyncio
    @respx.mock
    async def test_listing_not_a_directory(self, cache, team_source):
        """Should raise when the skills path is a file."""
        respx.get(INDEX_URL).mock(return_value=httpx.Response(404))
        respx.get(CONTENTS_URL).mock(return_value=httpx.Response(200, json={"type": "file"}))

        async with SourceResolver(cache) as resolver:
            with pytest.raises(RemoteUnavailableError, match="not a directory"):
                await resolver.list_source(team_source)

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_raises(self, cache, team_source):
        """Should map transport errors to RemoteUnavailableError."""
        respx.get(INDEX_URL).mock(side_effect=httpx.ConnectError("offline"))
        respx.get(CONTENTS_URL).mock(side_effect=httpx.ConnectError("offline"))

        async with SourceResolver(cache) as resolver:
            with pytest.raises(RemoteUnavailableError):
                await resolver.list_source(team_source)

    @pytest.mark.asyncio
    @respx.mock
    async def test_cached_within_ttl(self, cache, fake_clock, team_source):
        """Should serve repeated listings from the cache until the TTL passes."""
        contents = _mock_listing(["pdf"])

        async with SourceResolver(cache) as resolver:
            first = await resolver.list_source(team_source)
            second = await resolver.list_source(team_source)
            assert first == second
            assert contents.call_count == 1

            fake_clock.advance(301)
            await resolver.list_source(team_source)
            assert contents.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_github_token(self, cache, team_source):
        """Should send the token as a bearer header to the contents API."""
        contents = _mock_listing([])

        async with SourceResolver(cache, github_token="ghp_test") as resolver:
            await resolver.list_source(team_source)

        request = contents.calls.last.request
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"


@pytest.mark.unit
@pytest.mark.marketplace
class TestListAll:
    """Test SourceResolver.list_all and search."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_isolates_failing_source(self, cache, team_source):
        """Should skip unreachable sources and the search API source."""
        _mock_listing(["pdf"])
        broken = MarketplaceSource(id="broken", name="Broken", owner="gone", repo="repo")
        respx.get(
            "https://raw.githubusercontent.com/gone/repo/main/skills/skills-index.json"
        ).mock(return_value=httpx.Response(404))
        respx.get("https://api.github.com/repos/gone/repo/contents/skills?ref=main").mock(
            return_value=httpx.Response(404)
        )

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_all([broken, team_source, SEARCH_API_SOURCE])

        assert [s.name for s in skills] == ["pdf"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_restrict_to_source(self, cache, team_source):
        """Should only list the requested source."""
        _mock_listing(["pdf"])
        other = MarketplaceSource(id="other", name="Other", owner="other", repo="repo")

        async with SourceResolver(cache) as resolver:
            skills = await resolver.list_all([other, team_source], source_id="team")

        assert [s.name for s in skills] == ["pdf"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_search(self, cache, team_source):
        """Should match name, description and tags case-insensitively."""
        respx.get(INDEX_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "skills": [
                        {"name": "pdf", "description": "Read PDF files", "path": "skills/pdf"},
                        {"name": "xlsx", "description": "Spreadsheets", "path": "skills/xlsx"},
                        {
                            "name": "docx",
                            "description": "Word files",
                            "path": "skills/docx",
                            "tags": ["Office"],
                        },
                    ]
                },
            )
        )

        async with SourceResolver(cache) as resolver:
            by_name = await resolver.search("PDF", [team_source])
            by_description = await resolver.search("spread", [team_source])
            by_tag = await resolver.search("office", [team_source])

        assert [s.name for s in by_name] == ["pdf"]
        assert [s.name for s in by_description] == ["xlsx"]
        assert [s.name for s in by_tag] == ["docx"]
