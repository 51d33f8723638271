"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for RSSVault tests.

Every test that touches storage gets its own SQLite file under pytest's
tmp_path, so tests never share state.
"""

import pytest
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["RSSVAULT_LOGGING__FILE_PATH"] = ""
os.environ["RSSVAULT_LOGGING__CONSOLE_LOGGING"] = "false"


# ============================================================================
# Feed Documents
# ============================================================================

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example Tech Blog</title>
    <link>https://blog.example.com/</link>
    <description>Posts about software</description>
    <item>
      <title>First Post</title>
      <link>https://blog.example.com/first</link>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <dc:creator>Alice Writer</dc:creator>
      <description>Short summary of the first post</description>
      <content:encoded><![CDATA[<p>Hello <strong>world</strong></p><script>alert(1)</script>]]></content:encoded>
    </item>
    <item>
      <title>Second Post</title>
      <link>https://blog.example.com/second</link>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <description><![CDATA[<p>Second body <img src="https://blog.example.com/pic.png" alt="pic"></p>]]></description>
    </item>
    <item>
      <title>Third Post</title>
      <link>https://blog.example.com/third</link>
      <pubDate>Wed, 03 Jan 2024 10:00:00 GMT</pubDate>
      <description>Third body</description>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom Feed</title>
  <subtitle>An Atom subtitle</subtitle>
  <link href="https://atom.example.com/"/>
  <updated>2024-02-01T12:00:00Z</updated>
  <id>urn:uuid:60a76c80-d399-11d9-b91C-0003939e0af6</id>
  <entry>
    <title>Atom Entry One</title>
    <link rel="alternate" href="https://atom.example.com/one"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <published>2024-02-01T12:00:00Z</published>
    <author><name>Bob Author</name></author>
    <content type="html">&lt;p&gt;Atom content one&lt;/p&gt;</content>
  </entry>
  <entry>
    <title>Atom Entry Two</title>
    <link rel="alternate" href="https://atom.example.com/two"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6b</id>
    <updated>2024-02-02T08:30:00Z</updated>
    <summary>Atom summary two</summary>
  </entry>
</feed>
"""

RSS_WITHOUT_DATES = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Undated Feed</title>
    <item>
      <title>No Date Here</title>
      <link>https://undated.example.com/1</link>
      <description>Body without a date</description>
    </item>
  </channel>
</rss>
"""

MALFORMED_FEED = """<?xml version="1.0"?>
<rss version="2.0"><channel><title>Broken</title><item><title>Oops</item></channel>
"""

NOT_A_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<note><to>Tove</to><from>Jani</from><body>Not a feed</body></note>
"""


def make_rss(entries, title="Generated Feed"):
    """Build an RSS 2.0 document from (title, link, body) tuples."""
    items = "".join(
        f"<item><title>{entry_title}</title><link>{link}</link>"
        f"<pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>"
        f"<description>{body}</description></item>"
        for entry_title, link, body in entries
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<rss version="2.0"><channel><title>{title}</title>{items}</channel></rss>'
    )


@pytest.fixture
def rss_feed():
    return RSS_FEED


@pytest.fixture
def atom_feed():
    return ATOM_FEED


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database file with the full schema."""
    from rssvault.database.schema import DatabaseSchema

    db_path = tmp_path / "rssvault_test.db"
    DatabaseSchema(str(db_path)).create_tables()
    return str(db_path)


@pytest.fixture
def db_connection(temp_db):
    """Create a database connection manager for testing."""
    from rssvault.database.connection import DatabaseConnection

    connection = DatabaseConnection(temp_db, pool_size=2)
    yield connection

    # Cleanup connections
    connection.close_all_connections()


@pytest.fixture
def registry(db_connection):
    """SQLite-backed feed registry."""
    from rssvault.storage.registry import SQLiteFeedRegistry

    return SQLiteFeedRegistry(db_connection)


# ============================================================================
# Pipeline Fixtures
# ============================================================================


@pytest.fixture
def mock_fetcher():
    """Network collaborator returning whatever the test configures."""
    fetcher = AsyncMock()
    fetcher.fetch.return_value = RSS_FEED.encode("utf-8")
    return fetcher


@pytest.fixture
def pipeline(registry, mock_fetcher):
    """Ingestion pipeline over a temporary database and a mocked fetcher."""
    from rssvault.ingestion.pipeline import IngestionPipeline
    from rssvault.ingestion.feed_parser import FeedParser

    return IngestionPipeline(registry=registry, fetcher=mock_fetcher, parser=FeedParser())


@pytest.fixture
def sample_feed():
    """A stored-shape feed record."""
    from rssvault.database.models import Feed
    from rssvault.ingestion.fingerprint import feed_id_for

    url = "https://blog.example.com/feed.xml"
    return Feed(
        id=feed_id_for(url),
        url=url,
        title="Example Tech Blog",
        description="Posts about software",
    )


@pytest.fixture
def sample_items(sample_feed):
    """Items belonging to sample_feed, oldest first."""
    from rssvault.database.models import Item
    from rssvault.ingestion.fingerprint import item_id_for, content_hash_for

    items = []
    for index in range(3):
        link = f"https://blog.example.com/post-{index}"
        title = f"Post {index}"
        body = f"<p>Body {index}</p>"
        item = Item(
            id=item_id_for(link, title),
            feed_id=sample_feed.id,
            title=title,
            link=link,
            published_at=1_700_000_000_000 + index * 60_000,
            content=body,
            content_hash=content_hash_for(body, link, title),
        )
        items.append(item.model_copy(update={"size_bytes": item.serialized_size()}))
    return items
