"""
Consumer identity and its static assets.
"""

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

from shared.config import ConsumerConfig
from shared.errors import AssetUnavailableError
from shared.logging import get_logger


class ConsumerIdentity:
    """Who this consumer is to providers: name, description, landing page,
    public key and avatar.

    Key and avatar bytes are loaded by ``load_assets()``, which the service
    awaits during startup. Until it has completed, asset reads raise
    ``AssetUnavailableError``.
    """

    def __init__(self, name: str, about: str = "", redirect: str = "/",
                 key_path: Optional[str] = None, avatar_path: Optional[str] = None):
        self.name = name
        self.about = about
        self.redirect = redirect
        self.key_path = key_path
        self.avatar_path = avatar_path
        self.logger = get_logger("consumer.identity")

        self._key: Optional[bytes] = None
        self._avatar: Optional[bytes] = None
        self._assets_ready = False

    @classmethod
    def from_config(cls, config: ConsumerConfig) -> "ConsumerIdentity":
        return cls(
            name=config.name,
            about=config.about,
            redirect=config.redirect,
            key_path=config.key_path,
            avatar_path=config.avatar_path
        )

    @property
    def assets_ready(self) -> bool:
        return self._assets_ready

    async def load_assets(self):
        """Read key and avatar from disk; missing files are logged, not raised."""
        self._key = await self._read("key", self.key_path)
        self._avatar = await self._read("avatar", self.avatar_path)
        self._assets_ready = True
        self.logger.info(
            "Consumer assets loaded",
            key_loaded=self._key is not None,
            avatar_loaded=self._avatar is not None
        )

    async def _read(self, asset: str, path: Optional[str]) -> Optional[bytes]:
        if not path:
            self.logger.warning("No path configured for asset", asset=asset)
            return None
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            self.logger.error("Failed to load asset", asset=asset, path=path, error=str(e))
            return None

    @property
    def key(self) -> bytes:
        return self._asset("key", self._key)

    @property
    def avatar(self) -> bytes:
        return self._asset("avatar", self._avatar)

    @property
    def avatar_media_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.avatar_path or "")
        return guessed or "application/octet-stream"

    def _asset(self, asset: str, data: Optional[bytes]) -> bytes:
        if not self.assets_ready:
            raise AssetUnavailableError(asset, "assets are still loading")
        if data is None:
            raise AssetUnavailableError(asset, "asset could not be loaded")
        return data

    def about_document(self) -> Dict[str, Any]:
        """Body of ``GET /about``."""
        return {
            "name": self.name,
            "about": self.about,
            "key": "/key",
            "avatar": "/avatar"
        }
