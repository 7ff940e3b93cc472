# swarmcell

A pure-Python library for a small swarm-node protocol. Cooperating nodes
exchange fixed-size "pheromone" packets. The library also has a 24-byte
compact frame for low-bandwidth radios, per-platform resource profiles, a
bit-packed terrain cell encoding, MapReduce-style compute jobs, and Ethernet
header and descriptor layouts.

It has no runtime dependencies and needs Python 3.10 or later.

## Installation

```
pip install swarmcell
```

To run the tests:

```
pip install "swarmcell[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `swarmcell.pheromone` | `Pheromone`, the 64-byte packet, with `PheromoneType`, `Role`, `JobType` and `PheromoneError` |
| `swarmcell.compact` | `CompactPacket` (24 bytes); the payload layouts `CompactHeartbeat`, `CompactDetect`, `CompactSensor`, `CompactKV` and `CompactRobotPos`; and `fnv1a_32`, `to_compact`, `from_compact`, `lora_adaptive_sf` |
| `swarmcell.terrain_cell` | `TerrainCell` and its fields: `TerrainType`, `Cover`, `Threat`, `Strategic`, `Passability` |
| `swarmcell.config` | `Platform`, `ProfileName`, `NodeConfig`, `Timing`, `config_for`, `timing_for` |
| `swarmcell.compute` | `ComputeNode`, `ActiveJob`, `Chunk`, `NotQueenError`, plus `is_prime`, `count_primes_in_range`, `sum_range` and `monte_carlo_pi_samples` |
| `swarmcell.ethernet` | `EthernetHeader`, `RxDescriptor`, `TxDescriptor`, `format_mac`, and the NIC register and bit constants |

## Pheromone packets

A `Pheromone` is a frozen dataclass. `pack()` encodes it to 64 little-endian
bytes and `Pheromone.unpack()` decodes exactly 64 bytes. If the length is
wrong, or a field does not fit its width, `PheromoneError` is raised.
`PheromoneError` is a subclass of `ValueError`. The sender's role lives in
bits 1 to 3 of `flags`. `with_role()` returns a copy with the role set, and
`sender_role()` reads the role back.

```python
from swarmcell.pheromone import Pheromone, PheromoneType, Role

pkt = Pheromone(node_id=0x1234, kind=PheromoneType.HELLO).with_role(Role.QUEEN)
wire = pkt.pack()                      # 64 bytes
assert Pheromone.unpack(wire) == pkt
assert pkt.sender_role() is Role.QUEEN
```

## Compact frames

`to_compact()` truncates a standard packet to the compact format. It keeps
16-bit ids, 4-bit TTL, flags, distance and hop count, an 8-bit sequence
number, the first 8 payload bytes and the first 4 HMAC bytes.
`from_compact()` expands a compact packet again and pads it with zeros.
`CompactPacket.compute_hmac(key)` computes a 4-byte FNV-1a tag over the key
(at most 16 bytes of it) and the packet fields. It stores the tag and returns
it. `verify_hmac(key)` checks the tag that is stored.

```python
from swarmcell.compact import CompactPacket, fnv1a_32, from_compact, lora_adaptive_sf, to_compact

key = b"secret"
cmp = to_compact(pkt)
cmp.compute_hmac(key)
assert cmp.verify_hmac(key)
assert CompactPacket.unpack(cmp.pack()) == cmp   # 24 bytes on the wire

fnv1a_32(b"")            # 0x811C9DC5, the FNV-1a offset basis
lora_adaptive_sf(-80)    # 7: strong signal
lora_adaptive_sf(-100)   # 9
lora_adaptive_sf(-120)   # 12: weak signal
```

Each payload class packs to and unpacks from exactly 8 bytes.

## Terrain cells

A map cell is stored in two bytes. `TerrainCell.pack()` returns the pair
`(base, meta)`, and `TerrainCell.unpack(base, meta)` decodes the pair. A
field outside its bit width raises `ValueError`.

```python
from swarmcell.terrain_cell import Cover, Passability, TerrainCell, TerrainType

cell = TerrainCell(terrain=TerrainType.FOREST, elevation=3, cover=Cover.MEDIUM,
                   passability=Passability.SLOW, explored=True)
base, meta = cell.pack()
assert TerrainCell.unpack(base, meta) == cell
```

## Platform profiles

`config_for()` takes a `Platform` or its string value. It returns a frozen
`NodeConfig` that holds capabilities, enabled features, table sizes, packet
sizes, timing and debug switches. An unknown platform raises `ValueError`.
`timing_for(deep_sleep)` gives the timing for battery-powered nodes or for
mains-powered ones.

```python
from swarmcell.config import config_for

cfg = config_for("lora")
cfg.compact_packets                 # True
cfg.packet_total_size               # 24
cfg.timing.heartbeat_interval_ms    # 5000
```

## Distributed compute jobs

A `ComputeNode` does no I/O of its own. It needs four things passed in: a
node id, a `send` callable that receives each outgoing `Pheromone`, a
`should_relay` predicate for gossip deduplication, and, optionally, a clock,
a random source and a role. Only the queen may call `start_job()`. It
announces a prime-search job and returns the announcement. On any other node
it raises `NotQueenError`. A worker takes its share of the job with
`process_job_start()` and works it out with `process_chunk()`, which reports
the result. A coordinating node adds the reports up with
`process_job_done()`, and that method returns the total once every chunk has
arrived.

```python
from swarmcell.compute import ComputeNode, count_primes_in_range, sum_range
from swarmcell.pheromone import PheromoneType, Role

queen_out, worker_out = [], []
queen = ComputeNode(1, send=queen_out.append, should_relay=lambda p: True, role=Role.QUEEN)
worker = ComputeNode(2, send=worker_out.append, should_relay=lambda p: True)

announcement = queen.start_job()
worker.process_job_start(announcement)
count = worker.process_chunk()
done = next(p for p in worker_out if p.kind == PheromoneType.JOB_DONE)
assert queen.process_job_done(done) == count   # a lone queen splits the job into one chunk

count_primes_in_range(1, 10)   # 4
sum_range(1, 100)              # 5050
```

## Ethernet layouts

`EthernetHeader` packs to 14 bytes. Its ethertype is in network byte order
and defaults to `ETH_TYPE_NANOS`. `RxDescriptor` and `TxDescriptor` pack to
16 little-endian bytes each.

```python
from swarmcell.ethernet import EthernetHeader, format_mac

hdr = EthernetHeader(src=bytes.fromhex("020000000001"))
assert EthernetHeader.unpack(hdr.pack()) == hdr
assert hdr.is_broadcast
format_mac(hdr.src)   # "02:00:00:00:00:01"
```

## What this package does not do

swarmcell encodes, decodes and processes packets. It does not send or
receive anything on a network. It has no radio or NIC driver, no socket
transport, no command-line program, no node main loop or scheduler, and no
persistent storage. Your own code must move bytes between nodes and call
the node methods at the right times.