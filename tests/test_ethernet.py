import pytest

from swarmcell.ethernet import (
    BROADCAST_MAC,
    DESCRIPTOR_SIZE,
    E1000_RXD_STAT_DD,
    E1000_RXD_STAT_EOP,
    E1000_TXD_CMD_EOP,
    E1000_TXD_CMD_RS,
    E1000_TXD_STAT_DD,
    ETH_HEADER_SIZE,
    ETH_TYPE_NANOS,
    EthernetHeader,
    RxDescriptor,
    TxDescriptor,
    format_mac,
)

SRC = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
DST = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x02])


def test_format_mac():
    assert format_mac(SRC) == "02:00:00:00:00:01"
    assert format_mac(BROADCAST_MAC) == "FF:FF:FF:FF:FF:FF"


def test_format_mac_wrong_length():
    with pytest.raises(ValueError):
        format_mac(b"\x01\x02")


def test_ethernet_header_wire_bytes():
    data = EthernetHeader(dst=DST, src=SRC).pack()
    assert len(data) == ETH_HEADER_SIZE
    assert data[:6] == DST
    assert data[6:12] == SRC
    assert data[12:] == b"NO"


def test_ethernet_header_round_trip():
    header = EthernetHeader(dst=DST, src=SRC, ethertype=0x0800)
    assert EthernetHeader.unpack(header.pack()) == header


def test_ethernet_header_default_is_broadcast_nanos():
    header = EthernetHeader.unpack(EthernetHeader(src=SRC).pack())
    assert header.is_broadcast
    assert header.ethertype == ETH_TYPE_NANOS
    assert not EthernetHeader(dst=DST).is_broadcast


def test_ethernet_header_errors():
    with pytest.raises(ValueError):
        EthernetHeader(dst=b"\x00" * 5).pack()
    with pytest.raises(ValueError):
        EthernetHeader(ethertype=0x10000).pack()
    with pytest.raises(ValueError):
        EthernetHeader.unpack(b"\x00" * 13)


def test_rx_descriptor_round_trip():
    desc = RxDescriptor(
        addr=0x12345678, length=64, checksum=0xBEEF,
        status=E1000_RXD_STAT_DD | E1000_RXD_STAT_EOP, errors=0, special=7,
    )
    data = desc.pack()
    assert len(data) == DESCRIPTOR_SIZE
    assert RxDescriptor.unpack(data) == desc


def test_rx_descriptor_layout():
    data = RxDescriptor(addr=0x12345678, length=64).pack()
    assert data[:8] == (0x12345678).to_bytes(8, "little")
    assert data[8:10] == (64).to_bytes(2, "little")


def test_rx_descriptor_status_bits():
    assert RxDescriptor(status=E1000_RXD_STAT_DD).done
    assert not RxDescriptor(status=E1000_RXD_STAT_DD).end_of_packet
    assert RxDescriptor(status=E1000_RXD_STAT_EOP).end_of_packet
    assert not RxDescriptor().done


def test_rx_descriptor_errors():
    with pytest.raises(ValueError):
        RxDescriptor(length=70000).pack()
    with pytest.raises(ValueError):
        RxDescriptor.unpack(b"\x00" * 15)


def test_tx_descriptor_round_trip():
    desc = TxDescriptor(
        addr=0xABCDEF, length=64, cso=1,
        cmd=E1000_TXD_CMD_EOP | E1000_TXD_CMD_RS, status=0, css=2, special=3,
    )
    data = desc.pack()
    assert len(data) == DESCRIPTOR_SIZE
    assert TxDescriptor.unpack(data) == desc
    assert data[11] == E1000_TXD_CMD_EOP | E1000_TXD_CMD_RS


def test_tx_descriptor_done():
    assert TxDescriptor(status=E1000_TXD_STAT_DD).done
    assert not TxDescriptor().done


def test_tx_descriptor_errors():
    with pytest.raises(ValueError):
        TxDescriptor(cmd=256).pack()
    with pytest.raises(ValueError):
        TxDescriptor.unpack(b"\x00" * 17)