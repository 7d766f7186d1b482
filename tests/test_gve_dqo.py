import pytest

from pktforge.gve_dqo import (
    GVE_RX_DESC_DQO_GEN_BIT_MASK,
    GVE_RX_DESC_DQO_GEN_BYTE_OFFSET,
    GVE_TSO_MAXSIZE_DQO,
    GVE_TX_DESC_DQO_GEN_BIT_MASK,
    GVE_TX_DESC_DQO_GEN_BYTE_OFFSET,
    GVE_TX_GENERAL_CTX_DESC_DTYPE_DQO,
    GVE_TX_MAX_BUF_SIZE_DQO,
    GVE_TX_MAX_DATA_DESCS_DQO,
    GVE_TX_PKT_DESC_DTYPE_DQO,
    GVE_TX_TSO_CTX_DESC_DTYPE_DQO,
    RxComplDesc,
    RxDesc,
    TxComplDesc,
    TxContextCmdDtype,
    TxGeneralContextDesc,
    TxMetadata,
    TxPktDesc,
    TxTsoContextDesc,
    num_frags_in_page,
)


@pytest.mark.parametrize(
    "cls, size",
    [
        (TxPktDesc, 16),
        (TxContextCmdDtype, 2),
        (TxTsoContextDesc, 16),
        (TxGeneralContextDesc, 16),
        (TxMetadata, 12),
        (TxComplDesc, 8),
        (RxDesc, 32),
        (RxComplDesc, 32),
    ],
)
def test_packed_sizes(cls, size):
    assert len(cls().pack()) == size
    assert cls.SIZE == size


def test_tso_parameters_cover_max_packet():
    desc = TxPktDesc(buf_size=GVE_TX_MAX_BUF_SIZE_DQO)
    largest = TxPktDesc.unpack(desc.pack()).buf_size
    assert largest == GVE_TX_MAX_BUF_SIZE_DQO
    assert largest * GVE_TX_MAX_DATA_DESCS_DQO >= GVE_TSO_MAXSIZE_DQO
    tso = TxTsoContextDesc(tso_total_len=GVE_TSO_MAXSIZE_DQO)
    assert TxTsoContextDesc.unpack(tso.pack()).tso_total_len == GVE_TSO_MAXSIZE_DQO


def test_tx_pkt_desc_layout():
    addr = 0x1122334455667788
    raw = TxPktDesc(buf_addr=addr, end_of_packet=1, compl_tag=0xBEEF, buf_size=1500).pack()
    assert raw[:8] == addr.to_bytes(8, "little")
    assert raw[8] & 0x1F == GVE_TX_PKT_DESC_DTYPE_DQO
    assert raw[12:14] == (0xBEEF).to_bytes(2, "little")
    assert int.from_bytes(raw[14:16], "little") & 0x3FFF == 1500


def test_tx_pkt_desc_round_trip():
    desc = TxPktDesc(buf_addr=0xDEADBEEF, end_of_packet=1, checksum_offload_enable=1,
                     report_event=1, compl_tag=77, buf_size=GVE_TX_MAX_BUF_SIZE_DQO)
    assert TxPktDesc.unpack(desc.pack()) == desc


def test_context_cmd_dtype_round_trip():
    word = TxContextCmdDtype(dtype=GVE_TX_TSO_CTX_DESC_DTYPE_DQO, tso=1)
    raw = word.pack()
    assert raw == bytes([0x25, 0x00])
    assert TxContextCmdDtype.unpack(raw) == word


def test_context_descriptor_dtypes():
    tso = TxTsoContextDesc(tso_total_len=60000, mss=1448, header_len=54)
    assert tso.pack()[8] & 0x1F == GVE_TX_TSO_CTX_DESC_DTYPE_DQO
    assert TxTsoContextDesc.unpack(tso.pack()) == tso
    general = TxGeneralContextDesc(flex0=3, flex11=9)
    assert general.pack()[8] & 0x1F == GVE_TX_GENERAL_CTX_DESC_DTYPE_DQO
    assert TxGeneralContextDesc.unpack(general.pack()) == general


def test_metadata_round_trip():
    meta = TxMetadata(version=0, path_hash=0x7FFF, rehash_event=1)
    raw = meta.pack()
    assert raw[0] == meta.version
    assert raw[3:] == bytes(9)
    assert TxMetadata.unpack(raw) == meta


def test_tx_completion_generation_bit():
    on = TxComplDesc(generation=1).pack()
    off = TxComplDesc(generation=0, id=0x7FF).pack()
    assert on[GVE_TX_DESC_DQO_GEN_BYTE_OFFSET] & GVE_TX_DESC_DQO_GEN_BIT_MASK == GVE_TX_DESC_DQO_GEN_BIT_MASK
    assert off[GVE_TX_DESC_DQO_GEN_BYTE_OFFSET] & GVE_TX_DESC_DQO_GEN_BIT_MASK == 0


def test_tx_completion_tag_alias():
    desc = TxComplDesc()
    desc.completion_tag = 1234
    assert desc.tx_head == 1234
    assert TxComplDesc.unpack(desc.pack()).completion_tag == 1234


def test_rx_completion_generation_bit():
    on = RxComplDesc(generation=1).pack()
    off = RxComplDesc(packet_len=0x3FFF, buffer_queue_id=1).pack()
    assert on[GVE_RX_DESC_DQO_GEN_BYTE_OFFSET] & GVE_RX_DESC_DQO_GEN_BIT_MASK == GVE_RX_DESC_DQO_GEN_BIT_MASK
    assert off[GVE_RX_DESC_DQO_GEN_BYTE_OFFSET] & GVE_RX_DESC_DQO_GEN_BIT_MASK == 0


def test_rx_completion_round_trip():
    desc = RxComplDesc(loopback=1, packet_type=0x3FF, packet_len=9000, generation=1,
                       header_len=54, rsc=1, descriptor_done=1, end_of_packet=1,
                       csum_l4_err=1, buf_id=2047, raw_cs=0xABCD, hash=0xCAFEBABE)
    assert RxComplDesc.unpack(desc.pack()) == desc
    assert desc.rsc_seg_len == desc.raw_cs


def test_rx_desc_round_trip():
    desc = RxDesc(buf_id=17, buf_addr=0x1000, header_buf_addr=0x2000)
    raw = desc.pack()
    assert raw[:2] == (17).to_bytes(2, "little")
    assert raw[8:16] == (0x1000).to_bytes(8, "little")
    assert RxDesc.unpack(raw) == desc


def test_out_of_range_field_rejected():
    with pytest.raises(ValueError):
        TxPktDesc(buf_size=1 << 14).pack()
    with pytest.raises(ValueError):
        RxComplDesc(rxdid=16).pack()


def test_wrong_length_rejected():
    with pytest.raises(ValueError):
        TxPktDesc.unpack(bytes(15))
    with pytest.raises(ValueError):
        RxComplDesc.unpack(bytes(33))


def test_num_frags_in_page():
    assert num_frags_in_page(4096, 2048) == 2
    with pytest.raises(ZeroDivisionError):
        num_frags_in_page(4096, 0)