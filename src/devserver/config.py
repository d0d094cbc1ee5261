"""Server configuration loaded from environment variables."""
from pathlib import Path

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from devserver.events.watcher import normalize_ignores


class Settings(BaseSettings):
    """Server configuration loaded from environment variables.

    Host and port also honour the bare HOST and PORT variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        root: Web root directory, served and watched.
        ignore_raw: Comma-separated extra directory prefixes to ignore.
        debounce_ms: Debounce window for filesystem events.
        sse_ping_interval: Seconds between SSE keep-alive comments.
        live_reload: Watch the web root and inject the reload client.
        debug: Enable debug logging with console output.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVSERVER_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    host: str = Field(
        default="localhost",
        validation_alias=AliasChoices("DEVSERVER_HOST", "HOST", "host"),
    )
    port: int = Field(
        default=8080,
        validation_alias=AliasChoices("DEVSERVER_PORT", "PORT", "port"),
    )
    root: str = "public"
    ignore_raw: str = Field(
        default="",
        validation_alias=AliasChoices("DEVSERVER_IGNORE", "ignore_raw"),
    )
    debounce_ms: float = 100.0
    sse_ping_interval: int = 15
    live_reload: bool = True
    debug: bool = False

    @computed_field
    @property
    def root_path(self) -> Path:
        """Absolute web root, resolved against the working directory.

        Returns:
            Resolved web root path.
        """
        return Path(self.root).resolve()

    @computed_field
    @property
    def ignore_list(self) -> list[str]:
        """Parse ignore prefixes, defaults first.

        Returns:
            Directory prefixes whose changes never trigger a reload.
        """
        return list(normalize_ignores(
            prefix for prefix in self.ignore_raw.split(",") if prefix.strip()
        ))
