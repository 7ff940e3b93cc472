"""MapReduce-style distributed jobs: chunk assignment, processing and aggregation."""

from __future__ import annotations

import logging
import random
import struct
import time
from dataclasses import dataclass, replace
from math import isqrt
from typing import Callable

from swarmcell.pheromone import (
    GRADIENT_INFINITY,
    GRADIENT_MAX_HOPS,
    JobType,
    Pheromone,
    PheromoneError,
    PheromoneType,
    Role,
)

log = logging.getLogger(__name__)

MAX_ACTIVE_JOBS = 2
MAX_JOB_CHUNKS = 16
CHUNK_TIMEOUT = 500

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_JOB_START = struct.Struct("<IBIII")
_JOB_DONE = struct.Struct("<IIII")
_JOB_RESULT = struct.Struct("<III")


class NotQueenError(RuntimeError):
    """Raised when a node that is not the queen tries to start a global job."""


def is_prime(n: int) -> bool:
    """Trial-division primality test."""
    if n < 2:
        return False
    if n == 2:
        return True
    if n % 2 == 0:
        return False
    return all(n % i for i in range(3, isqrt(n) + 1, 2))


def count_primes_in_range(start: int, end: int) -> int:
    """Number of primes in the inclusive range start..end."""
    return sum(1 for n in range(start, end + 1) if is_prime(n))


def monte_carlo_pi_samples(samples: int, rng: Callable[[], int]) -> int:
    """Count random points of a 1000x1000 square that fall in the quarter circle."""
    inside = 0
    for _ in range(samples):
        x = rng() % 1000
        y = rng() % 1000
        if x * x + y * y < 1_000_000:
            inside += 1
    return inside


def sum_range(start: int, end: int) -> int:
    """Sum of the integers in the inclusive range start..end, modulo 2**64."""
    if end < start:
        return 0
    return ((start + end) * (end - start + 1) // 2) & _MASK64


@dataclass
class ActiveJob:
    """A job this node knows about, possibly aggregating its results."""

    job_id: int = 0
    job_type: int = 0
    active: bool = False
    param1: int = 0
    param2: int = 0
    chunks_total: int = 0
    chunks_done: int = 0
    result: int = 0
    started_at: int = 0
    coordinator_id: int = 0


@dataclass
class Chunk:
    """The slice of a job this node is working on."""

    job_id: int = 0
    job_type: int = 0
    chunk_id: int = 0
    range_start: int = 0
    range_end: int = 0
    processing: bool = False


def _default_clock() -> int:
    return int(time.monotonic() * 100) & _MASK32


def _default_rng() -> int:
    return random.getrandbits(32)


class ComputeNode:
    """One cell's part in distributed compute jobs.

    ``send`` receives each outgoing pheromone, ``should_relay`` is the gossip
    check deciding whether a pheromone is new enough to forward, ``clock``
    returns the current tick and ``rng`` returns random 32-bit integers.
    """

    def __init__(
        self,
        node_id: int,
        send: Callable[[Pheromone], object],
        should_relay: Callable[[Pheromone], bool],
        clock: Callable[[], int] = _default_clock,
        rng: Callable[[], int] = _default_rng,
        role: Role | int = Role.WORKER,
    ) -> None:
        self.node_id = node_id & _MASK32
        self._send = send
        self._should_relay = should_relay
        self._clock = clock
        self._rng = rng
        self.role = role
        self.distance_to_queen = 0 if role == Role.QUEEN else GRADIENT_INFINITY
        self.neighbor_count = 0
        self.seq_counter = 0
        self.packets_tx = 0
        self.jobs_completed = 0
        self.chunks_processed = 0
        self.active_jobs = [ActiveJob() for _ in range(MAX_ACTIVE_JOBS)]
        self.current_chunk = Chunk()
        self._job_counter = 0

    def _next_seq(self) -> int:
        seq = self.seq_counter
        self.seq_counter = (self.seq_counter + 1) & _MASK32
        return seq

    def _emit(self, pkt: Pheromone) -> None:
        self._send(pkt)
        self.packets_tx += 1

    def _relay(self, pkt: Pheromone, check_gossip: bool = True) -> None:
        if pkt.ttl > 0 and (not check_gossip or self._should_relay(pkt)):
            self._send(replace(pkt, ttl=pkt.ttl - 1))

    def process_chunk(self) -> int | None:
        """Work through the pending chunk, report it, and return its result."""
        chunk = self.current_chunk
        if not chunk.processing:
            return None

        start, end = chunk.range_start, chunk.range_end
        log.info("[JOB] Processing chunk %d (%d-%d)", chunk.chunk_id, start, end)

        if chunk.job_type == JobType.PRIME_SEARCH:
            result = count_primes_in_range(start, end)
        elif chunk.job_type == JobType.MONTE_CARLO_PI:
            result = monte_carlo_pi_samples((end - start) & _MASK32, self._rng)
        elif chunk.job_type == JobType.REDUCE_SUM:
            result = sum_range(start, end)
        else:
            result = 0

        payload = _JOB_DONE.pack(
            chunk.job_id & _MASK32,
            chunk.chunk_id & _MASK32,
            result & _MASK32,
            (result >> 32) & _MASK32,
        )
        pkt = Pheromone(
            node_id=self.node_id,
            kind=PheromoneType.JOB_DONE,
            ttl=GRADIENT_MAX_HOPS,
            seq=self._next_seq(),
            dest_id=0,
            distance=self.distance_to_queen & 0xFF,
            hop_count=0,
            payload=payload.ljust(32, b"\0"),
        ).with_role(self.role)
        self._emit(pkt)

        log.info("[JOB] Chunk %d done: %d", chunk.chunk_id, result & _MASK32)
        chunk.processing = False
        self.chunks_processed += 1
        return result

    def process_job_start(self, pkt: Pheromone) -> None:
        """Take this node's chunk of a newly announced job and relay the announcement."""
        job_id, job_type, param1, param2, num_chunks = _JOB_START.unpack_from(
            bytes(pkt.payload)
        )
        slot = self.active_jobs[job_id % MAX_ACTIVE_JOBS]

        if slot.job_id == job_id and slot.active:
            self._relay(pkt)
            return
        if self.current_chunk.job_id == job_id and self.current_chunk.processing:
            self._relay(pkt)
            return

        if num_chunks == 0:
            raise PheromoneError("job announcement has zero chunks")

        log.info(
            ">> JOB #%d type=%d range=%d-%d chunks=%d",
            job_id, job_type, param1, param2, num_chunks,
        )

        my_chunk = self.node_id % num_chunks
        range_size = ((param2 - param1) & _MASK32) // num_chunks
        chunk_start = (param1 + my_chunk * range_size) & _MASK32
        if my_chunk == num_chunks - 1:
            chunk_end = param2
        else:
            chunk_end = (chunk_start + range_size - 1) & _MASK32

        slot.job_id = job_id
        slot.job_type = job_type
        slot.active = True
        slot.param1 = param1
        slot.param2 = param2
        slot.chunks_total = num_chunks
        slot.chunks_done = 0
        slot.result = 0
        slot.started_at = self._clock()
        slot.coordinator_id = pkt.node_id

        self.current_chunk = Chunk(
            job_id=job_id,
            job_type=job_type,
            chunk_id=my_chunk,
            range_start=chunk_start,
            range_end=chunk_end,
            processing=True,
        )
        self._relay(pkt)

    def process_job_done(self, pkt: Pheromone) -> int | None:
        """Aggregate a chunk result if this node coordinates; return the final total."""
        job_id, chunk_id, lo, hi = _JOB_DONE.unpack_from(bytes(pkt.payload))
        result = (hi << 32) | lo
        slot = self.active_jobs[job_id % MAX_ACTIVE_JOBS]

        should_aggregate = (
            self.role == Role.QUEEN
            or slot.coordinator_id == self.node_id
            or (
                self.current_chunk.chunk_id == 0
                and self.current_chunk.job_id == job_id
            )
        )

        total = None
        if should_aggregate and slot.job_id == job_id and slot.active:
            slot.result = (slot.result + result) & _MASK64
            slot.chunks_done += 1
            log.info(
                "<< CHUNK %d result=%d (%d/%d)",
                chunk_id, result & _MASK32, slot.chunks_done, slot.chunks_total,
            )
            if slot.chunks_done >= slot.chunks_total:
                log.info(
                    "[JOB] Job %d complete: result=%d", job_id, slot.result & _MASK32
                )
                slot.active = False
                self.jobs_completed += 1
                total = slot.result
                payload = _JOB_RESULT.pack(
                    job_id, total & _MASK32, (total >> 32) & _MASK32
                )
                result_pkt = Pheromone(
                    node_id=self.node_id,
                    kind=PheromoneType.JOB_RESULT,
                    ttl=GRADIENT_MAX_HOPS,
                    seq=self._next_seq(),
                    dest_id=0,
                    distance=0,
                    hop_count=0,
                    payload=payload.ljust(32, b"\0"),
                ).with_role(Role.QUEEN)
                self._emit(result_pkt)

        self._relay(pkt)
        return total

    def process_job_result(self, pkt: Pheromone) -> tuple[int, int] | None:
        """Accept a final job result once; return (job_id, result) if it was new."""
        if not self._should_relay(pkt):
            return None

        job_id, lo, hi = _JOB_RESULT.unpack_from(bytes(pkt.payload))
        result = (hi << 32) | lo
        log.info(">> FINAL RESULT Job #%d: %d", job_id, result & _MASK32)

        slot = self.active_jobs[job_id % MAX_ACTIVE_JOBS]
        if slot.job_id == job_id:
            slot.active = False

        self._relay(pkt, check_gossip=False)
        return job_id, result

    def start_job(self) -> Pheromone:
        """Announce a prime-search job to the swarm; only the queen may do this."""
        if self.role != Role.QUEEN:
            raise NotQueenError("only the queen can start global jobs")

        job_id = self._job_counter
        self._job_counter = (self._job_counter + 1) & _MASK32

        range_start = 1 + (self._rng() % 1000)
        range_end = range_start + 1000 + (self._rng() % 5000)
        num_chunks = self.neighbor_count + 1 if self.neighbor_count > 0 else 1
        num_chunks = min(num_chunks, MAX_JOB_CHUNKS)

        log.info(
            ">> Starting PRIME SEARCH job #%d range %d-%d chunks %d",
            job_id, range_start, range_end, num_chunks,
        )

        payload = _JOB_START.pack(
            job_id, JobType.PRIME_SEARCH, range_start, range_end, num_chunks
        )
        pkt = Pheromone(
            node_id=self.node_id,
            kind=PheromoneType.JOB_START,
            ttl=GRADIENT_MAX_HOPS,
            seq=self._next_seq(),
            dest_id=0,
            distance=0,
            hop_count=0,
            payload=payload.ljust(32, b"\0"),
        ).with_role(Role.QUEEN)

        slot = self.active_jobs[job_id % MAX_ACTIVE_JOBS]
        slot.job_id = job_id
        slot.job_type = JobType.PRIME_SEARCH
        slot.active = True
        slot.param1 = range_start
        slot.param2 = range_end
        slot.chunks_total = num_chunks
        slot.chunks_done = 0
        slot.result = 0
        slot.started_at = self._clock()
        slot.coordinator_id = self.node_id

        self._emit(pkt)
        self.process_job_start(pkt)
        log.info("[JOB] Started global job %d", job_id)
        return pkt