"""Compact 24-byte packet format for low-bandwidth radios."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from swarmcell.pheromone import (
    HMAC_TAG_SIZE,
    PAYLOAD_SIZE,
    Pheromone,
    PheromoneError,
)

COMPACT_MAGIC = 0xAA
COMPACT_PAYLOAD_SIZE = 8
COMPACT_HMAC_SIZE = 4
COMPACT_PKT_SIZE = 24

LORA_SF_SHORT_RANGE = 7
LORA_SF_MEDIUM_RANGE = 9
LORA_SF_LONG_RANGE = 12

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_HMAC_KEY_LIMIT = 16
_HMAC_BUFFER = 32

_LAYOUT = struct.Struct("<BHBBBHB8s4s3s")


def fnv1a_32(data: bytes) -> int:
    """32-bit FNV-1a hash."""
    value = _FNV_OFFSET
    for byte in data:
        value = ((value ^ byte) * _FNV_PRIME) & 0xFFFFFFFF
    return value


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise PheromoneError(f"field out of range: {exc}") from exc


def _check_len(data: bytes, size: int, what: str) -> bytes:
    if len(data) != size:
        raise PheromoneError(f"{what} must be {size} bytes, got {len(data)}")
    return bytes(data)


@dataclass
class CompactPacket:
    """A compact pheromone with 16-bit ids and 4-bit TTL, flags, distance and hops."""

    node_id: int
    kind: int
    ttl: int = 0
    flags: int = 0
    seq: int = 0
    dest_id: int = 0
    distance: int = 0
    hop_count: int = 0
    payload: bytes = field(default=bytes(COMPACT_PAYLOAD_SIZE))
    hmac: bytes = field(default=bytes(COMPACT_HMAC_SIZE))
    magic: int = COMPACT_MAGIC
    reserved: bytes = field(default=bytes(3))

    @property
    def ttl_flags(self) -> int:
        return ((self.ttl & 0x0F) << 4) | (self.flags & 0x0F)

    @property
    def dist_hop(self) -> int:
        return ((self.distance & 0x0F) << 4) | (self.hop_count & 0x0F)

    def pack(self) -> bytes:
        """Encode to the 24-byte wire form."""
        if len(self.payload) > COMPACT_PAYLOAD_SIZE:
            raise PheromoneError(
                f"payload is {len(self.payload)} bytes, at most "
                f"{COMPACT_PAYLOAD_SIZE} allowed"
            )
        return _pack(
            _LAYOUT,
            self.magic,
            self.node_id,
            self.kind,
            self.ttl_flags,
            self.seq,
            self.dest_id,
            self.dist_hop,
            bytes(self.payload),
            bytes(self.hmac),
            bytes(self.reserved),
        )

    @classmethod
    def unpack(cls, data: bytes) -> CompactPacket:
        """Decode from exactly 24 bytes."""
        raw = _check_len(data, COMPACT_PKT_SIZE, "compact packet")
        (
            magic,
            node_id,
            kind,
            ttl_flags,
            seq,
            dest_id,
            dist_hop,
            payload,
            hmac,
            reserved,
        ) = _LAYOUT.unpack(raw)
        return cls(
            node_id=node_id,
            kind=kind,
            ttl=(ttl_flags >> 4) & 0x0F,
            flags=ttl_flags & 0x0F,
            seq=seq,
            dest_id=dest_id,
            distance=(dist_hop >> 4) & 0x0F,
            hop_count=dist_hop & 0x0F,
            payload=payload,
            hmac=hmac,
            magic=magic,
            reserved=reserved,
        )

    def _tag(self, key: bytes) -> bytes:
        buf = bytearray(key[:_HMAC_KEY_LIMIT])
        buf += bytes(
            (
                self.magic & 0xFF,
                self.node_id & 0xFF,
                (self.node_id >> 8) & 0xFF,
                self.kind & 0xFF,
                self.ttl_flags,
                self.seq & 0xFF,
                self.dest_id & 0xFF,
                (self.dest_id >> 8) & 0xFF,
                self.dist_hop,
            )
        )
        payload = bytes(self.payload).ljust(COMPACT_PAYLOAD_SIZE, b"\0")
        room = _HMAC_BUFFER - len(buf)
        buf += payload[: min(COMPACT_PAYLOAD_SIZE, room)]
        return fnv1a_32(bytes(buf)).to_bytes(4, "little")

    def compute_hmac(self, key: bytes) -> bytes:
        """Compute the 4-byte tag over key and packet, store it and return it."""
        self.hmac = self._tag(key)
        return self.hmac

    def verify_hmac(self, key: bytes) -> bool:
        """Whether the stored tag matches the one computed with this key."""
        return bytes(self.hmac) == self._tag(key)


def to_compact(pkt: Pheromone) -> CompactPacket:
    """Truncate a standard pheromone to the compact format."""
    return CompactPacket(
        node_id=pkt.node_id & 0xFFFF,
        kind=pkt.kind,
        ttl=pkt.ttl & 0x0F,
        flags=pkt.flags & 0x0F,
        seq=pkt.seq & 0xFF,
        dest_id=pkt.dest_id & 0xFFFF,
        distance=pkt.distance & 0x0F,
        hop_count=pkt.hop_count & 0x0F,
        payload=bytes(pkt.payload[:COMPACT_PAYLOAD_SIZE]).ljust(
            COMPACT_PAYLOAD_SIZE, b"\0"
        ),
        hmac=bytes(pkt.hmac[:COMPACT_HMAC_SIZE]).ljust(COMPACT_HMAC_SIZE, b"\0"),
    )


def from_compact(cmp: CompactPacket) -> Pheromone:
    """Expand a compact packet into a standard pheromone for processing."""
    return Pheromone(
        node_id=cmp.node_id,
        kind=cmp.kind,
        ttl=cmp.ttl & 0x0F,
        flags=cmp.flags & 0x0F,
        seq=cmp.seq,
        dest_id=cmp.dest_id,
        distance=cmp.distance & 0x0F,
        hop_count=cmp.hop_count & 0x0F,
        payload=bytes(cmp.payload[:COMPACT_PAYLOAD_SIZE]).ljust(PAYLOAD_SIZE, b"\0"),
        hmac=bytes(cmp.hmac[:COMPACT_HMAC_SIZE]).ljust(HMAC_TAG_SIZE, b"\0"),
    )


def lora_adaptive_sf(rssi: int) -> int:
    """Pick a LoRa spreading factor from received signal strength in dBm."""
    if rssi > -90:
        return LORA_SF_SHORT_RANGE
    if rssi > -110:
        return LORA_SF_MEDIUM_RANGE
    return LORA_SF_LONG_RANGE


@dataclass(frozen=True)
class CompactHeartbeat:
    """Heartbeat payload: role, neighbour count, battery percent, uptime minutes."""

    role: int
    neighbors: int
    battery: int
    uptime_min: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BBBH3x")

    def pack(self) -> bytes:
        return _pack(
            self._LAYOUT, self.role, self.neighbors, self.battery, self.uptime_min
        )

    @classmethod
    def unpack(cls, data: bytes) -> CompactHeartbeat:
        raw = _check_len(data, COMPACT_PAYLOAD_SIZE, "heartbeat payload")
        return cls(*cls._LAYOUT.unpack(raw))


@dataclass(frozen=True)
class CompactDetect:
    """Detection payload with signed position in decimetres."""

    detect_type: int
    confidence: int
    sector: int
    intensity: int
    pos_x: int
    pos_y: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BBBBhh")

    def pack(self) -> bytes:
        return _pack(
            self._LAYOUT,
            self.detect_type,
            self.confidence,
            self.sector,
            self.intensity,
            self.pos_x,
            self.pos_y,
        )

    @classmethod
    def unpack(cls, data: bytes) -> CompactDetect:
        raw = _check_len(data, COMPACT_PAYLOAD_SIZE, "detect payload")
        return cls(*cls._LAYOUT.unpack(raw))


@dataclass(frozen=True)
class CompactSensor:
    """Sensor reading payload."""

    sensor_type: int
    sensor_id: int
    value: int
    timestamp: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BBiH")

    def pack(self) -> bytes:
        return _pack(
            self._LAYOUT, self.sensor_type, self.sensor_id, self.value, self.timestamp
        )

    @classmethod
    def unpack(cls, data: bytes) -> CompactSensor:
        raw = _check_len(data, COMPACT_PAYLOAD_SIZE, "sensor payload")
        return cls(*cls._LAYOUT.unpack(raw))


@dataclass(frozen=True)
class CompactKV:
    """Key-value payload: 16-bit key hash and a 6-byte value."""

    key_hash: int
    value: bytes

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<H6s")

    def pack(self) -> bytes:
        if len(self.value) > 6:
            raise PheromoneError(f"value is {len(self.value)} bytes, at most 6 allowed")
        return _pack(self._LAYOUT, self.key_hash, bytes(self.value))

    @classmethod
    def unpack(cls, data: bytes) -> CompactKV:
        raw = _check_len(data, COMPACT_PAYLOAD_SIZE, "kv payload")
        return cls(*cls._LAYOUT.unpack(raw))


@dataclass(frozen=True)
class CompactRobotPos:
    """Robot position payload in centimetres with heading, speed and battery."""

    pos_x: int
    pos_y: int
    heading: int
    speed: int
    battery: int
    status: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<hhBBBB")

    def pack(self) -> bytes:
        return _pack(
            self._LAYOUT,
            self.pos_x,
            self.pos_y,
            self.heading,
            self.speed,
            self.battery,
            self.status,
        )

    @classmethod
    def unpack(cls, data: bytes) -> CompactRobotPos:
        raw = _check_len(data, COMPACT_PAYLOAD_SIZE, "robot payload")
        return cls(*cls._LAYOUT.unpack(raw))