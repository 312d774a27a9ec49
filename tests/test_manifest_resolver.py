"""Tests for playlist resolution and segment extraction."""

import pytest

from fakes import FakeHttpClient
from hls_pipeline.pipeline.manifest_resolver import (
    ManifestError,
    ManifestResolver,
    parse_segments,
    segment_key,
)
from hls_pipeline.utils.http_client import FetchError

MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=1280000,RESOLUTION=1280x720
720p/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=640000,RESOLUTION=640x360
360p/index.m3u8
"""

LEAF = """#EXTM3U
#EXT-X-TARGETDURATION:2
#EXTINF:2.0,
seg0.ts
#EXTINF:2.0,
seg1.ts
"""


class TestParseSegments:
    """Test parse_segments()."""

    def test_one_reference_per_line_in_order(self):
        content = "#EXTM3U\n\n  a.ts  \n#EXTINF:2.0,\nb.ts\n\n#comment\nc.ts\n"
        segments = parse_segments(content, "https://cdn.example.com/live/index.m3u8")

        assert [s.location for s in segments] == [
            "https://cdn.example.com/live/a.ts",
            "https://cdn.example.com/live/b.ts",
            "https://cdn.example.com/live/c.ts",
        ]
        assert [s.key for s in segments] == ["a.ts", "b.ts", "c.ts"]

    def test_absolute_and_rooted_references(self):
        content = "https://other.example.com/x/seg.ts\n/root/seg2.ts\n../up/seg3.ts\n"
        segments = parse_segments(content, "https://cdn.example.com/live/hd/index.m3u8")

        assert [s.location for s in segments] == [
            "https://other.example.com/x/seg.ts",
            "https://cdn.example.com/root/seg2.ts",
            "https://cdn.example.com/live/up/seg3.ts",
        ]

    def test_comment_only_playlist_is_empty(self):
        assert parse_segments("#EXTM3U\n#EXT-X-ENDLIST\n", "https://cdn.example.com/a.m3u8") == []

    def test_duplicate_lines_are_kept(self):
        segments = parse_segments("a.ts\na.ts\n", "https://cdn.example.com/index.m3u8")
        assert len(segments) == 2


class TestSegmentKey:
    """Test segment_key()."""

    def test_strips_query_string(self):
        assert segment_key("https://cdn.example.com/live/seg7.ts?token=abc&t=1") == "seg7.ts"

    def test_same_file_under_different_tokens_shares_key(self):
        first = segment_key("https://cdn.example.com/a/seg1.ts?sig=1")
        second = segment_key("https://cdn.example.com/a/seg1.ts?sig=2")
        assert first == second


class TestManifestResolver:
    """Test ManifestResolver following master playlists."""

    @pytest.mark.asyncio
    async def test_leaf_playlist_returned_verbatim(self):
        url = "https://cdn.example.com/live/index.m3u8"
        client = FakeHttpClient(texts={url: LEAF})

        resolved = await ManifestResolver(client).resolve(url)

        assert resolved.content == LEAF
        assert resolved.effective_url == url

    @pytest.mark.asyncio
    async def test_master_playlist_follows_first_variant(self):
        master_url = "https://cdn.example.com/live/master.m3u8"
        leaf_url = "https://cdn.example.com/live/720p/index.m3u8"
        client = FakeHttpClient(texts={master_url: MASTER, leaf_url: LEAF})

        resolved = await ManifestResolver(client).resolve(master_url)

        assert resolved.effective_url == leaf_url
        assert resolved.content == LEAF
        assert client.text_requests == [master_url, leaf_url]
        segments = parse_segments(resolved.content, resolved.effective_url)
        assert segments[0].location == "https://cdn.example.com/live/720p/seg0.ts"

    @pytest.mark.asyncio
    async def test_self_referential_master_raises(self):
        url = "https://cdn.example.com/live/master.m3u8"
        client = FakeHttpClient(texts={url: "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nmaster.m3u8\n"})

        with pytest.raises(ManifestError):
            await ManifestResolver(client).resolve(url)

    @pytest.mark.asyncio
    async def test_chain_deeper_than_limit_raises(self):
        texts = {}
        for level in range(5):
            texts[f"https://cdn.example.com/l{level}.m3u8"] = (
                f"#EXT-X-STREAM-INF:BANDWIDTH=1\nl{level + 1}.m3u8\n"
            )
        texts["https://cdn.example.com/l5.m3u8"] = LEAF
        client = FakeHttpClient(texts=texts)

        with pytest.raises(ManifestError):
            await ManifestResolver(client, max_depth=3).resolve("https://cdn.example.com/l0.m3u8")

        resolved = await ManifestResolver(client, max_depth=6).resolve("https://cdn.example.com/l0.m3u8")
        assert resolved.effective_url == "https://cdn.example.com/l5.m3u8"

    @pytest.mark.asyncio
    async def test_master_without_variants_raises(self):
        url = "https://cdn.example.com/master.m3u8"
        client = FakeHttpClient(texts={url: "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n"})

        with pytest.raises(ManifestError):
            await ManifestResolver(client).resolve(url)

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self):
        client = FakeHttpClient()

        with pytest.raises(FetchError) as excinfo:
            await ManifestResolver(client).resolve("https://cdn.example.com/missing.m3u8")
        assert excinfo.value.status == 404

    def test_resolve_blocking_follows_variants(self):
        master_url = "https://cdn.example.com/live/master.m3u8"
        leaf_url = "https://cdn.example.com/live/720p/index.m3u8"
        client = FakeHttpClient(texts={master_url: MASTER, leaf_url: LEAF})

        resolved = ManifestResolver(client).resolve_blocking(master_url)

        assert resolved.effective_url == leaf_url
