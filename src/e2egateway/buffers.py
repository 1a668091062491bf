"""Mutable byte buffers for secret material that are zeroed on release."""

from typing import Union


class SecretBuffer:
    """
    A bytearray holding sensitive data (frames, keys, decrypted payloads).

    Use as a context manager; the contents are overwritten with zeros when
    the block exits, whether normally or through an exception.

    Example usage:
        ```python
        with SecretBuffer(frame) as buf:
            envelope = seal(bytes(buf), recipient_pk, sender_sk)
        ```
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview] = b"") -> None:
        self._data = bytearray(data)

    def __enter__(self) -> "SecretBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"SecretBuffer(<{len(self._data)} bytes>)"

    @property
    def view(self) -> memoryview:
        """A read-only view over the buffer."""
        return memoryview(self._data).toreadonly()

    def wipe(self) -> None:
        """Overwrite the buffer with zeros."""
        for i in range(len(self._data)):
            self._data[i] = 0

    def is_wiped(self) -> bool:
        """Whether every byte in the buffer is zero."""
        return not any(self._data)
