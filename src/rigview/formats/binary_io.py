"""
Binary IO

Little-endian reader/writer over in-memory buffers shared by the SKN, SKL and
ANM codecs. The reader never touches the filesystem; callers hand it the bytes.
"""

import struct
from typing import Tuple

import numpy as np

from .errors import InvalidName, TruncatedData


class BinaryReader:
    """Cursor over a byte buffer that raises TruncatedData on short reads."""

    def __init__(self, data: bytes, asset: str = "", endian: str = "<"):
        """
        Initialize reader.

        Args:
            data: Complete asset buffer
            asset: Format label used in error messages (e.g. "SKN")
            endian: struct byte-order prefix
        """
        self.data = memoryview(bytes(data))
        self.asset = asset
        self.endian = endian
        self.offset = 0

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _require(self, num_bytes: int, what: str):
        if num_bytes < 0 or self.remaining() < num_bytes:
            raise TruncatedData(
                f"need {num_bytes} bytes for {what} at offset {self.offset}, "
                f"only {self.remaining()} left",
                self.asset,
            )

    def read_bytes(self, num_bytes: int, what: str = "bytes") -> bytes:
        self._require(num_bytes, what)
        start = self.offset
        self.offset += num_bytes
        return self.data[start:self.offset].tobytes()

    def skip(self, num_bytes: int, what: str = "padding"):
        self._require(num_bytes, what)
        self.offset += num_bytes

    def read_struct(self, fmt: str, what: str = "value") -> tuple:
        size = struct.calcsize(self.endian + fmt)
        self._require(size, what)
        values = struct.unpack_from(self.endian + fmt, self.data, self.offset)
        self.offset += size
        return values

    def read_u16(self, what: str = "u16") -> int:
        return self.read_struct("H", what)[0]

    def read_i16(self, what: str = "i16") -> int:
        return self.read_struct("h", what)[0]

    def read_u32(self, what: str = "u32") -> int:
        return self.read_struct("I", what)[0]

    def read_i32(self, what: str = "i32") -> int:
        return self.read_struct("i", what)[0]

    def read_f32(self, what: str = "f32") -> float:
        return self.read_struct("f", what)[0]

    def read_vec3(self, what: str = "vec3") -> Tuple[float, ...]:
        return self.read_struct("3f", what)

    def read_quat(self, what: str = "quaternion") -> Tuple[float, ...]:
        return self.read_struct("4f", what)

    def read_fixed_string(self, size: int, what: str = "name") -> str:
        """Read a NUL-padded string field of fixed width."""
        raw = self.read_bytes(size, what)
        return self._decode_name(raw.split(b"\0", 1)[0], what)

    def read_string(self, what: str = "name") -> str:
        """Read a u16 length-prefixed UTF-8 string."""
        length = self.read_u16(what)
        if length == 0:
            return ""
        return self._decode_name(self.read_bytes(length, what), what)

    def _decode_name(self, raw: bytes, what: str) -> str:
        # Names are hashed as UTF-8, so anything else would never match a track
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidName(f"{what} {raw!r} is not valid UTF-8 ({exc.reason})", self.asset) from None

    def read_array(self, dtype, count: int, what: str = "array") -> np.ndarray:
        """
        Read `count` consecutive records of a numpy dtype.

        Returns a writable copy so decoded assets never alias the input buffer.
        """
        dtype = np.dtype(dtype)
        self._require(dtype.itemsize * count, what)
        array = np.frombuffer(self.data, dtype=dtype, count=count, offset=self.offset)
        self.offset += dtype.itemsize * count
        return array.copy()


class BinaryWriter:
    """Append-only little-endian writer mirroring BinaryReader."""

    def __init__(self, endian: str = "<"):
        self.endian = endian
        self.buffer = bytearray()

    def write_bytes(self, data: bytes):
        self.buffer.extend(data)

    def pad(self, num_bytes: int):
        self.buffer.extend(b"\0" * num_bytes)

    def write_struct(self, fmt: str, *values):
        self.buffer.extend(struct.pack(self.endian + fmt, *values))

    def write_u16(self, value: int):
        self.write_struct("H", value)

    def write_i16(self, value: int):
        self.write_struct("h", value)

    def write_u32(self, value: int):
        self.write_struct("I", value)

    def write_i32(self, value: int):
        self.write_struct("i", value)

    def write_f32(self, value: float):
        self.write_struct("f", value)

    def write_floats(self, values):
        values = [float(v) for v in values]
        self.write_struct(f"{len(values)}f", *values)

    def write_fixed_string(self, text: str, size: int):
        raw = text.encode("utf-8")[:size]
        self.buffer.extend(raw + b"\0" * (size - len(raw)))

    def write_string(self, text: str):
        raw = text.encode("utf-8")
        self.write_u16(len(raw))
        self.buffer.extend(raw)

    def write_array(self, array: np.ndarray, dtype):
        self.buffer.extend(np.ascontiguousarray(array, dtype=np.dtype(dtype)).tobytes())

    def getvalue(self) -> bytes:
        return bytes(self.buffer)
