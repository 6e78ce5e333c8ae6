"""Raw block access to Mifare Classic style tags."""

from __future__ import annotations

from collections.abc import Sequence

from nfc_creator.core.logging import get_logger
from nfc_creator.tags.platform import (
    AuthFailed,
    Connector,
    IoFailed,
    RawBlockConnection,
    TargetProperties,
)

logger = get_logger(__name__)

BLOCK_SIZE = 16
KEY_LENGTH = 6
# Default key A and B of factory-fresh Mifare tags.
DEFAULT_KEY = b"\xff" * KEY_LENGTH


class MifareAdapter:
    """Reads and writes a full dump of a block-oriented tag under key authentication.

    The adapter owns the raw connection it wraps; :meth:`close` releases it.
    """

    def __init__(
        self,
        connection: RawBlockConnection,
        *,
        default_key: bytes = DEFAULT_KEY,
        uid: str | None = None,
    ) -> None:
        self._connection = connection
        self.uid = uid
        self._default_key = self._check_key(default_key)

    @classmethod
    def connect(
        cls,
        candidates: Sequence[TargetProperties],
        connector: Connector,
        connection_name: str,
        *,
        default_key: bytes = DEFAULT_KEY,
    ) -> MifareAdapter | None:
        """Open the first candidate connection advertised as ``connection_name``.

        Candidates whose connection can not be opened are skipped. Returns
        ``None`` when no candidate offers such a connection.
        """
        for target in candidates:
            for name in target.connection_names() or ():
                if name != connection_name:
                    continue
                url = target.connection_url(name)
                if url is None:
                    continue
                try:
                    connection = connector.open(url)
                except Exception as exc:
                    logger.warning(
                        "mifare_connection_open_failed",
                        uid=target.uid,
                        url=url,
                        error=str(exc),
                    )
                    continue
                logger.info("mifare_connection_opened", uid=target.uid, url=url)
                return cls(connection, default_key=default_key, uid=target.uid)
        return None

    @staticmethod
    def _check_key(key: bytes) -> bytes:
        if len(key) != KEY_LENGTH:
            raise AuthFailed(f"Mifare key must be {KEY_LENGTH} bytes, got {len(key)}")
        return bytes(key)

    @property
    def sector_count(self) -> int:
        return self._connection.sector_count

    @property
    def block_count(self) -> int:
        return self._connection.block_count

    @property
    def size_bytes(self) -> int:
        return self._connection.size

    def read(
        self,
        key: bytes | None = None,
        dst: bytearray | None = None,
        start_block: int = 0,
        start_byte: int = 0,
        length: int | None = None,
    ) -> bytes:
        """Read ``length`` bytes (default: the whole data area) into ``dst``.

        Returns the bytes actually read.
        """
        auth_key = self._check_key(key) if key is not None else self._default_key
        if length is None:
            length = self.size_bytes
        if dst is None:
            dst = bytearray(length)
        try:
            count = self._connection.read(auth_key, dst, start_block, start_byte, length)
        except OSError as exc:
            raise IoFailed(str(exc)) from exc
        logger.debug(
            "mifare_read",
            sectors=self.sector_count,
            blocks=self.block_count,
            size=self.size_bytes,
            read=count,
        )
        return bytes(dst[:count])

    def write(self, key: bytes | None, src: bytes, start_block: int = 0) -> int:
        """Write ``src`` starting at ``start_block``; returns the number of bytes written."""
        auth_key = self._check_key(key) if key is not None else self._default_key
        capacity = self.size_bytes - start_block * BLOCK_SIZE
        if len(src) > capacity:
            raise IoFailed(f"dump of {len(src)} bytes does not fit into {capacity} bytes")
        try:
            self._connection.write(auth_key, bytes(src), start_block)
        except OSError as exc:
            raise IoFailed(str(exc)) from exc
        return len(src)

    def close(self) -> None:
        self._connection.close()
