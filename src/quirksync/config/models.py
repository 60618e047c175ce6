"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, quirksync.toml only contains
overrides. A deployment normally needs no file at all; the writer secrets
come from the ``FX_REMOTE_SETTINGS_WRITER_*`` environment variables.
"""

from __future__ import annotations

import base64

from pydantic import BaseModel

from quirksync.errors import MissingCredentials

GITHUB_CONTENTS_ROOT = (
    "https://api.github.com/repos/apple/password-manager-resources/contents/quirks"
)


class SourceConfig(BaseModel):
    """[source] section."""

    model_config = {"frozen": True}

    realms_url: str = f"{GITHUB_CONTENTS_ROOT}/websites-with-shared-credential-backends.json"
    rules_url: str = f"{GITHUB_CONTENTS_ROOT}/password-rules.json"


class DestinationConfig(BaseModel):
    """[destination] section."""

    model_config = {"frozen": True}

    bucket: str = "main"
    realms_collection: str = "websites-with-shared-credential-backends"
    rules_collection: str = "password-rules"


class WriterCredentials(BaseModel):
    """[writer] section — Remote Settings writer account and server."""

    model_config = {"frozen": True}

    user: str = ""
    password: str = ""
    server: str = ""

    def check(self) -> None:
        """Raise :class:`MissingCredentials` if either secret is empty."""
        if self.user == "" or self.password == "":
            raise MissingCredentials("No username or password set, quitting!")

    def basic_token(self) -> str:
        """``base64(user:password)`` for the ``Authorization: Basic`` header."""
        secret = f"{self.user}:{self.password}".encode()
        return base64.b64encode(secret).decode("ascii")

    def __repr__(self) -> str:
        return f"WriterCredentials(user={self.user!r}, password='***', server={self.server!r})"
