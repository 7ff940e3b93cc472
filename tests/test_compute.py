import struct

import pytest

from swarmcell.compute import (
    MAX_JOB_CHUNKS,
    ComputeNode,
    NotQueenError,
    count_primes_in_range,
    is_prime,
    monte_carlo_pi_samples,
    sum_range,
)
from swarmcell.pheromone import (
    GRADIENT_MAX_HOPS,
    JobType,
    Pheromone,
    PheromoneError,
    PheromoneType,
    Role,
)


def make_node(node_id=5, relay=True, role=Role.WORKER, rng=lambda: 0):
    sent = []
    node = ComputeNode(
        node_id,
        sent.append,
        lambda pkt: relay,
        clock=lambda: 42,
        rng=rng,
        role=role,
    )
    return node, sent


def job_start(job_id, job_type, p1, p2, chunks, sender=99, ttl=GRADIENT_MAX_HOPS):
    payload = struct.pack("<IBIII", job_id, job_type, p1, p2, chunks).ljust(32, b"\0")
    return Pheromone(
        node_id=sender, kind=PheromoneType.JOB_START, ttl=ttl, payload=payload
    )


def job_done(job_id, chunk_id, result, sender=7):
    payload = struct.pack(
        "<IIII", job_id, chunk_id, result & 0xFFFFFFFF, result >> 32
    ).ljust(32, b"\0")
    return Pheromone(node_id=sender, kind=PheromoneType.JOB_DONE, payload=payload)


def job_result(job_id, result, ttl=GRADIENT_MAX_HOPS):
    payload = struct.pack(
        "<III", job_id, result & 0xFFFFFFFF, result >> 32
    ).ljust(32, b"\0")
    return Pheromone(
        node_id=3, kind=PheromoneType.JOB_RESULT, ttl=ttl, payload=payload
    )


@pytest.mark.parametrize("n,expected", [(0, False), (1, False), (2, True), (3, True), (4, False), (9, False), (97, True)])
def test_is_prime(n, expected):
    assert is_prime(n) is expected


def test_count_primes_is_additive():
    assert count_primes_in_range(1, 500) == (
        count_primes_in_range(1, 200) + count_primes_in_range(201, 500)
    )


def test_count_primes_single_values():
    assert count_primes_in_range(97, 97) == 1
    assert count_primes_in_range(100, 100) == 0


def test_sum_range_is_additive_and_empty():
    assert sum_range(1, 100) == sum_range(1, 40) + sum_range(41, 100)
    assert sum_range(10, 9) == 0
    assert sum_range(7, 7) == 7


def test_monte_carlo_extremes():
    assert monte_carlo_pi_samples(50, lambda: 0) == 50
    assert monte_carlo_pi_samples(50, lambda: 999) == 0


def test_start_job_requires_queen():
    node, sent = make_node()
    with pytest.raises(NotQueenError):
        node.start_job()
    assert sent == []


def test_queen_start_job_announces_and_records():
    node, sent = make_node(node_id=1, role=Role.QUEEN)
    node.neighbor_count = 3
    pkt = node.start_job()
    assert sent[0] == pkt
    assert pkt.kind == PheromoneType.JOB_START
    assert pkt.sender_role() == Role.QUEEN
    job_id, job_type, p1, p2, chunks = struct.unpack_from("<IBIII", pkt.payload)
    assert job_type == JobType.PRIME_SEARCH
    assert chunks == 4
    assert p2 - p1 >= 1000
    slot = node.active_jobs[job_id % 2]
    assert slot.active and slot.coordinator_id == 1 and slot.started_at == 42
    # own announcement is deduplicated and relayed with one hop less
    assert sent[1].ttl == GRADIENT_MAX_HOPS - 1
    assert not node.current_chunk.processing


def test_start_job_chunk_count_capped():
    node, _ = make_node(node_id=1, role=Role.QUEEN)
    node.neighbor_count = 40
    pkt = node.start_job()
    assert struct.unpack_from("<IBIII", pkt.payload)[4] == MAX_JOB_CHUNKS


def test_job_start_chunks_partition_range():
    pieces = []
    for node_id in range(4):
        node, _ = make_node(node_id=node_id)
        node.process_job_start(job_start(8, JobType.REDUCE_SUM, 0, 103, 4))
        chunk = node.current_chunk
        assert chunk.processing and chunk.chunk_id == node_id
        pieces.append((chunk.range_start, chunk.range_end))
    assert pieces[0][0] == 0
    assert pieces[-1][1] == 103
    for (_, end), (start, _) in zip(pieces, pieces[1:]):
        assert start == end + 1


def test_job_start_relays_and_deduplicates():
    node, sent = make_node(node_id=5)
    pkt = job_start(8, JobType.PRIME_SEARCH, 10, 90, 4)
    node.process_job_start(pkt)
    assert len(sent) == 1 and sent[0].ttl == pkt.ttl - 1
    first = node.current_chunk
    node.process_job_start(pkt)
    assert node.current_chunk is first
    assert len(sent) == 2


def test_job_start_zero_chunks_rejected():
    node, _ = make_node()
    with pytest.raises(PheromoneError):
        node.process_job_start(job_start(8, JobType.PRIME_SEARCH, 1, 10, 0))


def test_process_chunk_reports_result():
    node, sent = make_node(node_id=6, relay=False)
    assert node.process_chunk() is None
    node.process_job_start(job_start(4, JobType.REDUCE_SUM, 1, 100, 4))
    chunk = node.current_chunk
    result = node.process_chunk()
    assert result == sum_range(chunk.range_start, chunk.range_end)
    done = sent[-1]
    assert done.kind == PheromoneType.JOB_DONE
    assert struct.unpack_from("<IIII", done.payload) == (4, chunk.chunk_id, result, 0)
    assert not node.current_chunk.processing
    assert node.chunks_processed == 1
    assert node.process_chunk() is None


def test_process_chunk_prime_search():
    node, _ = make_node(node_id=0, relay=False)
    node.process_job_start(job_start(2, JobType.PRIME_SEARCH, 1, 200, 1))
    assert node.process_chunk() == count_primes_in_range(1, 200)


def test_queen_aggregates_results():
    node, sent = make_node(node_id=1, role=Role.QUEEN, relay=False)
    node.process_job_start(job_start(6, JobType.REDUCE_SUM, 0, 99, 3, sender=50))
    sent.clear()
    assert node.process_job_done(job_done(6, 0, 10)) is None
    assert node.process_job_done(job_done(6, 1, 20)) is None
    total = node.process_job_done(job_done(6, 2, (1 << 32) + 5))
    assert total == 35 + (1 << 32)
    assert node.jobs_completed == 1
    assert not node.active_jobs[0].active
    final = sent[-1]
    assert final.kind == PheromoneType.JOB_RESULT
    assert struct.unpack_from("<III", final.payload) == (6, 35, 1)


def test_non_coordinator_does_not_aggregate():
    node, sent = make_node(node_id=5, relay=True)
    node.process_job_start(job_start(6, JobType.REDUCE_SUM, 0, 99, 3, sender=50))
    sent.clear()
    pkt = job_done(6, 2, 10)
    assert node.process_job_done(pkt) is None
    assert node.active_jobs[0].chunks_done == 0
    assert sent == [Pheromone(**{**pkt.__dict__, "ttl": pkt.ttl - 1})]


def test_job_result_new_and_duplicate():
    node, sent = make_node(node_id=5, relay=True)
    node.process_job_start(job_start(6, JobType.REDUCE_SUM, 0, 99, 3))
    sent.clear()
    assert node.process_job_result(job_result(6, 77)) == (6, 77)
    assert not node.active_jobs[0].active
    assert sent[0].ttl == GRADIENT_MAX_HOPS - 1

    quiet, quiet_sent = make_node(relay=False)
    assert quiet.process_job_result(job_result(6, 77)) is None
    assert quiet_sent == []


def test_job_result_ttl_zero_not_relayed():
    node, sent = make_node(relay=True)
    assert node.process_job_result(job_result(3, 1, ttl=0)) == (3, 1)
    assert sent == []