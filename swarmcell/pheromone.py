"""The 64-byte pheromone packet exchanged between swarm cells."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum

NANOS_MAGIC = 0x4E414E4F
NANOS_VERSION = 0x0003

HMAC_TAG_SIZE = 8
PAYLOAD_SIZE = 32
PACKET_SIZE = 64

FLAG_AUTHENTICATED = 1 << 0
FLAG_ROLE_SHIFT = 1
FLAG_ROLE_MASK = 0x0E
FLAG_URGENT = 1 << 4
FLAG_ROUTED = 1 << 5

GRADIENT_INFINITY = 255
GRADIENT_MAX_HOPS = 15

_LAYOUT = struct.Struct("<IIBBBBIIBBBB8s32s")


class PheromoneType(IntEnum):
    """Message kinds carried in the packet's type byte."""

    HELLO = 0x01
    DATA = 0x02
    ALARM = 0x03
    ECHO = 0x04
    ELECTION = 0x05
    CORONATION = 0x06
    QUERY = 0x07
    QUEEN_CMD = 0x10
    KV_SET = 0x20
    KV_GET = 0x21
    KV_REPLY = 0x22
    TASK = 0x30
    RESULT = 0x31
    SENSOR = 0x40
    AGGREGATE = 0x41
    JOB_START = 0x50
    JOB_CHUNK = 0x51
    JOB_DONE = 0x52
    JOB_RESULT = 0x53
    JOB_STATUS = 0x54
    DETECT = 0x60
    CORRELATE = 0x61
    TRACK = 0x62
    CLEAR = 0x63
    MAZE_INIT = 0x70
    MAZE_DISCOVER = 0x71
    MAZE_PATH = 0x72
    MAZE_SOLVED = 0x73
    MAZE_MOVE = 0x74
    TERRAIN_INIT = 0x80
    TERRAIN_REPORT = 0x81
    TERRAIN_THREAT = 0x82
    TERRAIN_OBJECTIVE = 0x83
    TERRAIN_MOVE = 0x84
    TERRAIN_STRATEGY = 0x85
    TERRAIN_COMPLETE = 0x86
    TERRAIN_ROUTE = 0x87
    REBIRTH = 0xFE
    DIE = 0xFF


class Role(IntEnum):
    """Roles a cell can take in the swarm."""

    WORKER = 0x01
    EXPLORER = 0x02
    SENTINEL = 0x03
    QUEEN = 0x04
    CANDIDATE = 0x05


class JobType(IntEnum):
    """Kinds of distributed compute jobs."""

    PRIME_SEARCH = 0x01
    MONTE_CARLO_PI = 0x02
    HASH_SEARCH = 0x03
    REDUCE_SUM = 0x04
    WORD_COUNT = 0x05


class PheromoneError(ValueError):
    """Raised when a packet cannot be encoded or decoded."""


@dataclass(frozen=True)
class Pheromone:
    """A standard pheromone packet (16-byte header, routing, HMAC, payload)."""

    node_id: int
    kind: int
    ttl: int = GRADIENT_MAX_HOPS
    flags: int = 0
    seq: int = 0
    dest_id: int = 0
    distance: int = GRADIENT_INFINITY
    hop_count: int = 0
    via_node_lo: int = 0
    via_node_hi: int = 0
    hmac: bytes = field(default=bytes(HMAC_TAG_SIZE))
    payload: bytes = field(default=bytes(PAYLOAD_SIZE))
    magic: int = NANOS_MAGIC
    version: int = NANOS_VERSION

    def pack(self) -> bytes:
        """Encode the packet to its 64-byte little-endian wire form."""
        if len(self.payload) > PAYLOAD_SIZE:
            raise PheromoneError(
                f"payload is {len(self.payload)} bytes, at most {PAYLOAD_SIZE} allowed"
            )
        if len(self.hmac) > HMAC_TAG_SIZE:
            raise PheromoneError(
                f"hmac is {len(self.hmac)} bytes, at most {HMAC_TAG_SIZE} allowed"
            )
        try:
            return _LAYOUT.pack(
                self.magic,
                self.node_id,
                self.kind,
                self.ttl,
                self.flags,
                self.version,
                self.seq,
                self.dest_id,
                self.distance,
                self.hop_count,
                self.via_node_lo,
                self.via_node_hi,
                bytes(self.hmac),
                bytes(self.payload),
            )
        except struct.error as exc:
            raise PheromoneError(f"field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> Pheromone:
        """Decode a packet from exactly 64 bytes."""
        if len(data) != PACKET_SIZE:
            raise PheromoneError(
                f"pheromone must be {PACKET_SIZE} bytes, got {len(data)}"
            )
        (
            magic,
            node_id,
            kind,
            ttl,
            flags,
            version,
            seq,
            dest_id,
            distance,
            hop_count,
            via_lo,
            via_hi,
            hmac,
            payload,
        ) = _LAYOUT.unpack(bytes(data))
        return cls(
            node_id=node_id,
            kind=kind,
            ttl=ttl,
            flags=flags,
            seq=seq,
            dest_id=dest_id,
            distance=distance,
            hop_count=hop_count,
            via_node_lo=via_lo,
            via_node_hi=via_hi,
            hmac=hmac,
            payload=payload,
            magic=magic,
            version=version,
        )

    def with_role(self, role: int) -> Pheromone:
        """Return a copy whose flags carry the given sender role."""
        flags = ((self.flags & ~FLAG_ROLE_MASK) | (int(role) << FLAG_ROLE_SHIFT)) & 0xFF
        return replace(self, flags=flags)

    def sender_role(self) -> Role | int:
        """The sender role encoded in the flags."""
        value = (self.flags & FLAG_ROLE_MASK) >> FLAG_ROLE_SHIFT
        try:
            return Role(value)
        except ValueError:
            return value