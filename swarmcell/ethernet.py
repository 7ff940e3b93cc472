"""Ethernet frame header and e1000 descriptor layouts used by the swarm link."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

PCI_CONFIG_ADDR = 0xCF8
PCI_CONFIG_DATA = 0xCFC

E1000_VENDOR_ID = 0x8086
E1000_DEVICE_ID = 0x100E

E1000_CTRL = 0x0000
E1000_STATUS = 0x0008
E1000_EERD = 0x0014
E1000_ICR = 0x00C0
E1000_IMS = 0x00D0
E1000_IMC = 0x00D8
E1000_RCTL = 0x0100
E1000_TCTL = 0x0400
E1000_RDBAL = 0x2800
E1000_RDBAH = 0x2804
E1000_RDLEN = 0x2808
E1000_RDH = 0x2810
E1000_RDT = 0x2818
E1000_TDBAL = 0x3800
E1000_TDBAH = 0x3804
E1000_TDLEN = 0x3808
E1000_TDH = 0x3810
E1000_TDT = 0x3818
E1000_RAL = 0x5400
E1000_RAH = 0x5404
E1000_MTA = 0x5200

E1000_CTRL_SLU = 1 << 6
E1000_CTRL_RST = 1 << 26

E1000_RCTL_EN = 1 << 1
E1000_RCTL_SBP = 1 << 2
E1000_RCTL_UPE = 1 << 3
E1000_RCTL_MPE = 1 << 4
E1000_RCTL_BAM = 1 << 15
E1000_RCTL_BSIZE_2K = 0 << 16
E1000_RCTL_SECRC = 1 << 26

E1000_TCTL_EN = 1 << 1
E1000_TCTL_PSP = 1 << 3
E1000_TCTL_CT_SHIFT = 4
E1000_TCTL_COLD_SHIFT = 12

E1000_RXD_STAT_DD = 1 << 0
E1000_RXD_STAT_EOP = 1 << 1
E1000_TXD_STAT_DD = 1 << 0
E1000_TXD_CMD_EOP = 1 << 0
E1000_TXD_CMD_RS = 1 << 3

E1000_NUM_RX_DESC = 32
E1000_NUM_TX_DESC = 8
E1000_RX_BUFFER_SIZE = 2048

ETH_ALEN = 6
ETH_TYPE_NANOS = 0x4E4F
ETH_HEADER_SIZE = 14
DESCRIPTOR_SIZE = 16

BROADCAST_MAC = b"\xff" * ETH_ALEN


def _check_len(data: bytes, size: int, what: str) -> bytes:
    if len(data) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(data)}")
    return bytes(data)


def _pack(layout: struct.Struct, *values) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"field out of range: {exc}") from exc


def format_mac(mac: bytes) -> str:
    """Render a 6-byte MAC address as colon-separated upper-case hex."""
    raw = _check_len(mac, ETH_ALEN, "MAC address")
    return ":".join(f"{byte:02X}" for byte in raw)


@dataclass(frozen=True)
class EthernetHeader:
    """Destination, source and ethertype of a frame (ethertype in network order)."""

    dst: bytes = BROADCAST_MAC
    src: bytes = bytes(ETH_ALEN)
    ethertype: int = ETH_TYPE_NANOS

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f">{ETH_ALEN}s{ETH_ALEN}sH")

    def pack(self) -> bytes:
        """Encode to the 14-byte header."""
        dst = _check_len(self.dst, ETH_ALEN, "destination MAC")
        src = _check_len(self.src, ETH_ALEN, "source MAC")
        return _pack(self._LAYOUT, dst, src, self.ethertype)

    @classmethod
    def unpack(cls, data: bytes) -> EthernetHeader:
        """Decode from exactly 14 bytes."""
        raw = _check_len(data, ETH_HEADER_SIZE, "ethernet header")
        dst, src, ethertype = cls._LAYOUT.unpack(raw)
        return cls(dst=dst, src=src, ethertype=ethertype)

    @property
    def is_broadcast(self) -> bool:
        """Whether the frame is addressed to every station."""
        return bytes(self.dst) == BROADCAST_MAC


@dataclass(frozen=True)
class RxDescriptor:
    """A 16-byte receive descriptor as the NIC writes it."""

    addr: int = 0
    length: int = 0
    checksum: int = 0
    status: int = 0
    errors: int = 0
    special: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<QHHBBH")

    @property
    def done(self) -> bool:
        """Whether the NIC has finished with this descriptor."""
        return bool(self.status & E1000_RXD_STAT_DD)

    @property
    def end_of_packet(self) -> bool:
        """Whether this descriptor holds the last part of a packet."""
        return bool(self.status & E1000_RXD_STAT_EOP)

    def pack(self) -> bytes:
        """Encode to 16 little-endian bytes."""
        return _pack(
            self._LAYOUT,
            self.addr,
            self.length,
            self.checksum,
            self.status,
            self.errors,
            self.special,
        )

    @classmethod
    def unpack(cls, data: bytes) -> RxDescriptor:
        """Decode from exactly 16 bytes."""
        raw = _check_len(data, DESCRIPTOR_SIZE, "rx descriptor")
        return cls(*cls._LAYOUT.unpack(raw))


@dataclass(frozen=True)
class TxDescriptor:
    """A 16-byte legacy transmit descriptor."""

    addr: int = 0
    length: int = 0
    cso: int = 0
    cmd: int = 0
    status: int = 0
    css: int = 0
    special: int = 0

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<QHBBBBH")

    @property
    def done(self) -> bool:
        """Whether the NIC has sent this descriptor's packet."""
        return bool(self.status & E1000_TXD_STAT_DD)

    def pack(self) -> bytes:
        """Encode to 16 little-endian bytes."""
        return _pack(
            self._LAYOUT,
            self.addr,
            self.length,
            self.cso,
            self.cmd,
            self.status,
            self.css,
            self.special,
        )

    @classmethod
    def unpack(cls, data: bytes) -> TxDescriptor:
        """Decode from exactly 16 bytes."""
        raw = _check_len(data, DESCRIPTOR_SIZE, "tx descriptor")
        return cls(*cls._LAYOUT.unpack(raw))