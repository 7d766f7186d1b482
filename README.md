# pktforge

Tools for unit tests of network code. You can stack header templates into
packet templates and turn them into in-memory packet buffers. You can then
check buffers field by field against the headers you expected. The package
also packs and unpacks the fixed-layout DQO descriptors of the gVNIC
device, and it runs global test fixtures in order.

The package has no third-party dependencies.

## Installation

```
pip install pktforge
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "pktforge[test]"
pytest
```

## Modules

### `pktforge.mbuf`

- `Mbuf` is one buffer of a packet chain. It has these members:
  - `data`, a `bytearray`.
  - `len`, the number of valid bytes.
  - `flags`.
  - `pkthdr`, a `PacketHeader` with `len`, `ether_vtag` and `csum_flags`.
  - `next`.
- `chain()` yields every buffer in the chain.
- `contiguous_bytes()` joins the valid bytes of the chain into one `bytes` object.
- `alloc_mbuf(size)` returns a zero-filled buffer with `M_PKTHDR` set. A negative size raises `ValueError`.
- Flag constants: `M_PKTHDR`, `M_VLANTAG`, `CSUM_L3_CALC`, `CSUM_L3_VALID`, `CSUM_L4_CALC` and `CSUM_L4_VALID`.

### `pktforge.addresses`

`EtherAddr`, `Ipv4Addr` and `Ipv6Addr` are immutable address values.

- `parse(text)` reads the usual text form and raises `ValueError` on bad input.
- `to_bytes()` returns the address in network byte order.
- `str()` formats the address again.

### `pktforge.layer`

- `LayerVal` names a layer: `L2`, `L3`, `L4` or `PAYLOAD`.
- `LayerRef(layer, nesting)` picks one occurrence of a layer in a header stack. Nesting `1` is the outermost occurrence and `-1` the innermost. Zero is rejected.
- `nested(layer, nesting)` builds a `LayerRef`.
- `make_layer_name(layer, nesting)` gives a readable name such as `L3` or `L4<-1>`.
- Ready-made references: `L2`, `L3`, `L4`, `PAYLOAD`, `OUTER_L2`, `OUTER_L3`, `OUTER_L4`, `INNER_L2`, `INNER_L3` and `INNER_L4`.

### `pktforge.fields`

Each function returns a mutator, a callable that sets one attribute on a header:

- `src` and `dst`
- `mtu`
- `checksum`, `checksum_verified` and `checksum_passed`
- `ethertype` and `mbuf_vlan`
- `seq` and `incr_seq`
- `ack` and `incr_ack`
- `flags`
- `window` and `incr_window`
- `urp`, which sets `urgent_pointer`

Values outside the field's range raise `ValueError`. The `incr_*` mutators wrap around.

### `pktforge.packet`

- `packet_template(*items)` joins header objects, or existing templates, into a `PacketTemplateWrapper`.
- A header object must provide:
  - `layer`, `length`, `payload_length` and `mtu`
  - `set_outer_mtu(mtu)`
  - `fill_packet(mbuf, offset)`
  - `next()` and `retransmission()`
  - `print(depth)`

  It may also define `set_lower_fields(lower)`.
- When a template is built, each header gets the room its enclosing header leaves through `set_outer_mtu`. Each enclosing header's `payload_length` is then set to the size of everything inside it.

Templates do not change in place. These methods return a new template:

- `with_(*mutators)` changes the innermost header.
- `with_header(layer).fields(*mutators)` changes the header chosen by a `LayerRef` or `LayerVal`. It raises `LookupError` if there is no such header.
- `next()` and `retransmission()` call the same methods on every header.

Other methods:

- `generate()` returns an `Mbuf` holding every header.
- `unwrap()` returns the headers, outermost first.
- `print()` prints each header.

### `pktforge.print_indent`

`print_indent(depth, fmt, *args, stream=None)` writes `fmt % args`. The text is indented by four spaces per level and goes to standard error unless you pass `stream`.

### `pktforge.l2l3_matchers` and `pktforge.l4_matchers`

The matchers are `EthernetMatcher`, `Ipv4Matcher`, `Ipv6Matcher`, `TcpMatcher` and `PayloadMatcher`. Each one takes a header template and the byte offset of that header in the packet.

- `match_and_explain(mbuf)` returns a `MatchResult`. The result is true when the buffer matches. When it does not, it explains the first field that differs.
- Calling a matcher returns just the boolean.
- `describe()` names the protocol.
- The IPv4 and TCP matchers do not compare the checksum field. They do check the checksum flags in `pkthdr.csum_flags`.
- The module docstrings list the attributes each matcher reads from its template.

### `pktforge.gve_dqo`

These dataclasses are descriptors:

- `TxPktDesc`
- `TxContextCmdDtype`
- `TxTsoContextDesc`
- `TxGeneralContextDesc`
- `TxMetadata`
- `TxComplDesc`
- `RxDesc`
- `RxComplDesc`

`pack()` returns the exact little-endian wire image. A value too wide for its bit field raises `ValueError`. `unpack(data)` reads the image back and needs exactly `SIZE` bytes. The module also defines the device constants and `num_frags_in_page(page_size, rx_buf_size)`.

### `pktforge.sysunit`

- `InitializerRegistry` holds `Initializer` objects.
  - `set_up_all()` sorts them by `(subsystem, order)` and sets each one up.
  - `tear_down_all()` tears them down in reverse order.
  - Registering after set-up raises `RuntimeError`.
- `TestSuite.set_up()` and `tear_down()` run the registry around `test_case_set_up()` and `test_case_tear_down()`.
- Each `GlobalMock` subclass registers an initializer.
  - The initializer creates a strict autospec mock of the class on set-up and drops it on tear-down.
  - `mock_obj()` returns the mock and raises `RuntimeError` when none exists.
- `default_registry` is used when no registry is given.

## Example

```python
from dataclasses import dataclass
from types import SimpleNamespace

from pktforge.fields import DEFAULT_MTU
from pktforge.gve_dqo import TxPktDesc
from pktforge.l2l3_matchers import EthernetMatcher
from pktforge.layer import LayerVal
from pktforge.packet import packet_template
from pktforge.print_indent import print_indent


@dataclass
class Raw:
    layer: LayerVal
    body: bytes
    payload_length: int = 0
    mtu: int = DEFAULT_MTU

    @property
    def length(self):
        return len(self.body)

    def set_outer_mtu(self, mtu):
        self.mtu = min(self.mtu, mtu)

    def fill_packet(self, mbuf, offset):
        mbuf.data[offset:offset + self.length] = self.body

    def next(self):
        return self

    def retransmission(self):
        return self

    def print(self, depth):
        print_indent(depth, "%s %s", self.layer.value, self.body.hex())


eth = bytes.fromhex("ffffffffffff" "020000000001" "0800")
tmpl = packet_template(Raw(LayerVal.L2, eth), Raw(LayerVal.PAYLOAD, b"abc"))
tmpl2 = tmpl.with_header(LayerVal.PAYLOAD).fields(lambda h: setattr(h, "body", b"xyz"))

mbuf = tmpl2.generate()
assert mbuf.contiguous_bytes() == eth + b"xyz"

expected = SimpleNamespace(
    dst="ff:ff:ff:ff:ff:ff", src="02:00:00:00:00:01", ethertype=0x0800, mbuf_vlan=0
)
assert EthernetMatcher(expected, 0).match_and_explain(mbuf)

assert len(TxPktDesc(buf_addr=0x1000, buf_size=64, end_of_packet=1).pack()) == 16
```

## What the package does not provide

- It has no ready-made Ethernet, IPv4, IPv6, TCP or payload header templates. `packet_template` works with any object that provides the members listed above, and you supply those objects yourself.
- The matchers read expected values from plain attributes, so any object that carries those attributes will do.
- There is no command-line tool.