"""Pydantic config models for the chat client.

SystemMarkers — fixed phrases the backend sends outside of any reply stream.
ChatClientConfig — endpoints, reconnect policy and marker set for one client.
"""
import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SystemMarkers(BaseModel):
    """Phrases identifying welcome banners and server-side error notes."""
    welcome: list[str] = Field(default_factory=lambda: [
        "Welcome to DocIntel",
        "Bem vindo ao DocIntel",
        "É muito bom ter você de volta ao DocIntel",
    ])
    error: list[str] = Field(default_factory=lambda: [
        "Sorry, I am unable to process",
        "I ran into some problems",
    ])


class ChatClientConfig(BaseModel):
    """Connection settings for the DocIntel chat backend."""
    api_base_url: str = "http://localhost:8080/api/chats"
    """REST base for chat resources; the transcript lives at ``{api_base_url}/{chat_id}/messages``."""
    retrieval_base_url: str = "http://localhost:8080/api/retrieve"
    """REST base for retrieval provenance of a single turn."""
    ws_base_url: str = "ws://localhost:8080"
    ws_path_prefix: str = "/document-support-agent"
    initial_backoff: float = Field(default=1.0, gt=0)
    """Reconnect delay in seconds after the first failure; restored on every successful open."""
    max_backoff: float = Field(default=30.0, gt=0)
    heartbeat: Optional[float] = 30.0
    """Ping interval in seconds for the socket, ``None`` disables pings."""
    markers: SystemMarkers = Field(default_factory=SystemMarkers)
    connection_error_text: str = "Error: the connection is not open. Please try again."

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> "ChatClientConfig":
        if self.max_backoff < self.initial_backoff:
            raise ValueError(
                f"max_backoff ({self.max_backoff}) must not be below initial_backoff ({self.initial_backoff})"
            )
        return self

    def endpoint_for(self, chat_id: str) -> str:
        """Build the socket endpoint for a chat.

        :param chat_id: Id of the chat to join
        :return: Full websocket URL
        """
        if not chat_id:
            raise ValueError("A chat id is required to build the socket endpoint")
        prefix = "/" + self.ws_path_prefix.strip("/") if self.ws_path_prefix.strip("/") else ""
        return f"{self.ws_base_url.rstrip('/')}{prefix}/{chat_id}"

    def messages_url(self, chat_id: str) -> str:
        return f"{self.api_base_url.rstrip('/')}/{chat_id}/messages"

    @classmethod
    def from_env(cls) -> "ChatClientConfig":
        """Create a config from ``DOCINTEL_*`` environment variables, falling back to defaults."""
        overrides = {}
        for key, env_name in (
            ("api_base_url", "DOCINTEL_API_URL"),
            ("retrieval_base_url", "DOCINTEL_RETRIEVE_URL"),
            ("ws_base_url", "DOCINTEL_WS_URL"),
            ("ws_path_prefix", "DOCINTEL_WS_PATH"),
        ):
            value = os.environ.get(env_name)
            if value:
                overrides[key] = value
        return cls(**overrides)
