"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsdigest", description="Database name")
    user: str = Field("newsdigest", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class NewsletterConfig(BaseModel):
    """Newsletter presentation and selection limits."""

    # Accept the camelCase keys of older feeds.config.json documents as well.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field("Daily Digest", description="Digest title")
    description: str = Field("", description="Digest subtitle")
    author: str = Field("", description="Digest author")
    max_items_per_feed: int = Field(10, description="Items considered per feed", ge=0)
    max_total_items: int = Field(50, description="Items published per digest", ge=0)
    retention_days: int = Field(30, description="Days a seen URL is remembered", ge=0)


class FetchConfig(BaseModel):
    """Feed fetching policy."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timeout: float = Field(30.0, description="Per-feed timeout in seconds", gt=0)
    request_delay: float = Field(0.5, description="Pause after each request in seconds", ge=0)
    max_concurrent: int = Field(1, description="Feeds fetched at the same time", ge=1, le=20)
    user_agent: str = Field(
        "newsdigest/1.0 (RSS digest generator)",
        description="User-Agent header sent to feed hosts",
    )


class FeedSource(BaseModel):
    """One configured feed."""

    name: str = Field(..., description="Source name", min_length=1)
    url: str = Field(..., description="RSS/Atom feed URL", min_length=1)
    category: str = Field("Uncategorized", description="Display category")
    enabled: bool = Field(True, description="Whether the source is fetched")


class ConfigModel(BaseModel):
    """Main configuration model."""

    output_dir: str = Field("~/newsdigest/output", description="Directory for rendered HTML")
    newsletter: NewsletterConfig = Field(default_factory=NewsletterConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    feeds: List[FeedSource] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list, description="Category display order")

    @property
    def enabled_feeds(self) -> List[FeedSource]:
        """Feeds that should be fetched."""
        return [f for f in self.feeds if f.enabled]
